"""Clocks used by the payment countdown."""
import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple


class Clock(ABC):
    """Source of the current time and of sleeps."""

    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for ``seconds``."""
        pass


class SystemClock(Clock):
    """Wall clock backed by the event loop."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualClock(Clock):
    """Virtual clock that only moves when ``advance`` is called.

    Sleepers wake once the virtual time reaches their deadline.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2025, 1, 1, 20, 0, tzinfo=timezone.utc)
        self._sleepers: List[Tuple[datetime, asyncio.Future]] = []

    def now(self) -> datetime:
        return self._now

    async def sleep(self, seconds: float) -> None:
        deadline = self._now + timedelta(seconds=seconds)
        if deadline <= self._now:
            await asyncio.sleep(0)
            return
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((deadline, future))
        await future

    def advance(self, seconds: float) -> None:
        """Move time forward and wake every sleeper that is now due."""
        self._now += timedelta(seconds=seconds)
        due = [(deadline, future) for deadline, future in self._sleepers if deadline <= self._now]
        self._sleepers = [entry for entry in self._sleepers if entry[0] > self._now]
        for _, future in due:
            if not future.done():
                future.set_result(None)

    @property
    def sleeper_count(self) -> int:
        return sum(1 for _, future in self._sleepers if not future.done())
