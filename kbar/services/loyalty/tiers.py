"""Loyalty tier lookup.

Tiers are half-open point bands, ordered by their lower bound. The last
band has no upper bound.
"""
import math
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, computed_field


class TierBand(NamedTuple):
    name: str
    lower: int
    upper: Optional[int]  # exclusive; None for the top tier


TIER_BANDS: List[TierBand] = [
    TierBand("KBar Member", 0, 10),
    TierBand("Bronze Member", 10, 100),
    TierBand("Silver Member", 100, 250),
    TierBand("Gold Member", 250, 500),
    TierBand("Platinum Member", 500, 600),
    TierBand("Diamond Member", 600, 1000),
    TierBand("VIP Member", 1000, None),
]


class TierProgress(BaseModel):
    """Progress through the current tier band, for progress bars."""

    current_tier: str
    next_tier: Optional[str] = None
    points_into_band: int
    points_needed: int
    band_width: int

    @computed_field
    @property
    def fraction(self) -> float:
        """Completed share of the band; the top tier is always complete."""
        if self.points_needed == 0:
            return 1.0
        return min(self.points_into_band / self.band_width, 1.0)


def _band_index(points: int) -> int:
    if points < 0:
        raise ValueError(f"Points must be non-negative, got {points}")
    for index, band in enumerate(TIER_BANDS):
        if band.upper is None or points < band.upper:
            return index
    return len(TIER_BANDS) - 1


def get_tier(points: int) -> str:
    """Map a point balance to its tier name."""
    return TIER_BANDS[_band_index(points)].name


def get_progress(points: int) -> TierProgress:
    """Progress towards the next tier."""
    index = _band_index(points)
    band = TIER_BANDS[index]
    if band.upper is None:
        return TierProgress(
            current_tier=band.name,
            next_tier=None,
            points_into_band=0,
            points_needed=0,
            band_width=0,
        )
    return TierProgress(
        current_tier=band.name,
        next_tier=TIER_BANDS[index + 1].name,
        points_into_band=points - band.lower,
        points_needed=band.upper - points,
        band_width=band.upper - band.lower,
    )


def points_for_total(total: float) -> int:
    """Points earned for a paid order: one per whole currency unit."""
    # Round to cents first so float noise like 22.999999 does not lose a point
    return int(math.floor(round(total, 2)))
