"""
Key/value storage over the storage_items table.

Mirrors the browser local-storage contract the record store was written
against: string keys, string values, whole-value reads and writes.
"""

from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_copilot.core.config import settings
from clinic_copilot.core.logger import get_logger
from clinic_copilot.exceptions.errors import StorageError, StorageQuotaExceededError
from clinic_copilot.models.storage_item import StorageItem

logger = get_logger("key_value_storage")


class KeyValueStorage:
    """Async get/set/remove of string values, one row per key."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        quota_bytes: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.quota_bytes = settings.STORAGE_QUOTA_BYTES if quota_bytes is None else quota_bytes

    async def get_item(self, key: str) -> Optional[str]:
        try:
            async with self.session_factory() as db:
                item = await db.get(StorageItem, key)
                return item.value if item else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        size = len(value.encode("utf-8"))
        if self.quota_bytes and size > self.quota_bytes:
            raise StorageQuotaExceededError(
                f"Value for '{key}' is {size} bytes, quota is {self.quota_bytes} bytes"
            )

        try:
            async with self.session_factory() as db:
                item = await db.get(StorageItem, key)
                if item:
                    item.value = value
                else:
                    db.add(StorageItem(key=key, value=value))
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

        logger.debug(f"Stored {size} bytes under '{key}'")

    async def remove_item(self, key: str) -> None:
        try:
            async with self.session_factory() as db:
                await db.execute(delete(StorageItem).where(StorageItem.key == key))
                await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove '{key}': {e}") from e
