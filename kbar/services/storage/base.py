"""Key-value store interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class KeyValueStore(ABC):
    """Abstract base class for JSON key-value stores."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get the decoded value stored under key, or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    async def set_many(self, values: Dict[str, Any]) -> None:
        """Store several values in one atomic write."""
        pass
