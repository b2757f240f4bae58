"""SQL-backed key-value store."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kbar.db.models import KeyValueRecord
from kbar.services.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class SqlKeyValueStore(KeyValueStore):
    """Key-value store persisting records in the ``kv_records`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[Any]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(KeyValueRecord).where(KeyValueRecord.key == key)
            )
            record = result.scalar_one_or_none()
            return record.value if record else None

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    async def remove(self, key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))
            await session.commit()

    async def set_many(self, values: Dict[str, Any]) -> None:
        async with self.session_factory() as session:
            for key, value in values.items():
                record = await session.get(KeyValueRecord, key)
                if record is None:
                    session.add(KeyValueRecord(key=key, value=value))
                else:
                    record.value = value
                    record.updated_at = datetime.utcnow()
            await session.commit()
        logger.debug(f"[STORE] Wrote keys: {', '.join(values)}")
