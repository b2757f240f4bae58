"""In-memory key-value store."""
import json
from typing import Any, Dict, Optional

from kbar.services.storage.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Key-value store holding JSON strings in a dict.

    Values are round-tripped through ``json`` so callers see the same
    serialization behavior as a persistent backend.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def set_many(self, values: Dict[str, Any]) -> None:
        # Encode everything first so a bad value leaves the store untouched
        encoded = {key: json.dumps(value) for key, value in values.items()}
        self._data.update(encoded)

    def keys(self):
        return list(self._data.keys())
