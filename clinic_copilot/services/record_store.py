"""
Record Store - the durable table of user records.

The whole table is one JSON blob under one storage key. Every operation reads
the table, changes it and writes it back. Storage failures never reach the
caller: reads fall back to an empty table and failed writes are logged and
dropped, so callers must cope with an empty table at any time.

Mutations are serialized with an asyncio lock inside this process only.
Two processes sharing the same database can still lose each other's updates.
"""

import asyncio
import json
import re
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from clinic_copilot.core.config import settings
from clinic_copilot.core.logger import get_logger
from clinic_copilot.exceptions.errors import StorageError
from clinic_copilot.schemas.health_record import (
    ChatSummary,
    HealthRecord,
    HeartRateEntry,
    Medication,
    MoodEntry,
    SleepEntry,
    UserRecord,
    normalize_fields,
    utc_now,
)
from clinic_copilot.schemas.user_schemas import VerifiedIdentity
from clinic_copilot.services.key_value_storage import KeyValueStorage
from clinic_copilot.services.schema_migrations import SchemaMigrationError, migrate, wrap
from clinic_copilot.services.session_pointer import SessionPointer

logger = get_logger("record_store")

UserTable = Dict[str, UserRecord]

_table_adapter = TypeAdapter(Dict[str, UserRecord])


def generate_user_id(email: str, created_at_ms: int) -> str:
    return f"user_{re.sub(r'[^a-zA-Z0-9]', '_', email)}_{created_at_ms}"


class RecordStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        session: SessionPointer,
        storage_key: Optional[str] = None,
    ):
        self.storage = storage
        self.session = session
        self.storage_key = storage_key or settings.STORAGE_KEY
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Table I/O
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(raw: str) -> UserTable:
        users = migrate(json.loads(raw))
        return _table_adapter.validate_python(users)

    @staticmethod
    def _serialize(table: UserTable) -> str:
        users = {
            user_id: record.model_dump(mode="json", by_alias=True)
            for user_id, record in table.items()
        }
        return json.dumps(wrap(users), indent=2, ensure_ascii=False)

    async def _read_table(self) -> UserTable:
        try:
            raw = await self.storage.get_item(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to read user storage: {e}")
            return {}

        if not raw:
            return {}

        try:
            return self._parse(raw)
        except (ValueError, SchemaMigrationError) as e:
            logger.error(f"Failed to parse user storage: {e}")
            return {}

    async def _write_table(self, table: UserTable) -> None:
        try:
            await self.storage.set_item(self.storage_key, self._serialize(table))
        except StorageError as e:
            logger.error(f"Failed to save user storage: {e}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, identity: VerifiedIdentity) -> UserRecord:
        now = utc_now()
        user_id = generate_user_id(identity.email, int(now.timestamp() * 1000))

        record = UserRecord(
            id=user_id,
            name=identity.name,
            email=identity.email,
            picture=identity.picture,
            created_at=now,
            last_login=now,
        )

        async with self._lock:
            table = await self._read_table()
            table[user_id] = record
            await self._write_table(table)

        logger.info(f"Created user record {user_id}")
        return record

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        table = await self._read_table()
        return table.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        table = await self._read_table()
        return next((record for record in table.values() if record.email == email), None)

    async def get_current_user(self) -> Optional[UserRecord]:
        if not self.session.current_user_id:
            return None
        return await self.get_user(self.session.current_user_id)

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserRecord]:
        """Shallow-merge top-level fields and refresh last_login."""
        async with self._lock:
            table = await self._read_table()
            record = table.get(user_id)
            if record is None:
                return None

            merged = {name: getattr(record, name) for name in UserRecord.model_fields}
            merged.update(normalize_fields(UserRecord, fields))
            merged["id"] = user_id
            merged["last_login"] = utc_now()

            table[user_id] = UserRecord.model_validate(merged)
            await self._write_table(table)
            return table[user_id]

    async def delete_user(self, user_id: str) -> bool:
        async with self._lock:
            table = await self._read_table()
            if user_id not in table:
                return False

            del table[user_id]
            await self._write_table(table)

        if self.session.clear_if(user_id):
            logger.info(f"Deleted current user {user_id}; session cleared")
        return True

    # ------------------------------------------------------------------
    # Health data
    # ------------------------------------------------------------------

    async def update_health_data(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserRecord]:
        """Shallow-merge fields into health_data only."""
        async with self._lock:
            table = await self._read_table()
            record = table.get(user_id)
            if record is None:
                return None

            health = record.health_data
            merged = {name: getattr(health, name) for name in HealthRecord.model_fields}
            merged.update(normalize_fields(HealthRecord, fields))

            record.health_data = HealthRecord.model_validate(merged)
            await self._write_table(table)
            return record

    async def _prepend(self, user_id: str, collection: str, entry) -> Optional[UserRecord]:
        async with self._lock:
            table = await self._read_table()
            record = table.get(user_id)
            if record is None:
                return None

            getattr(record.health_data, collection).insert(0, entry)
            await self._write_table(table)
            return record

    async def add_mood_entry(self, user_id: str, entry: MoodEntry) -> Optional[UserRecord]:
        return await self._prepend(user_id, "mood_entries", entry)

    async def add_sleep_entry(self, user_id: str, entry: SleepEntry) -> Optional[UserRecord]:
        return await self._prepend(user_id, "sleep_entries", entry)

    async def add_heart_rate_entry(self, user_id: str, entry: HeartRateEntry) -> Optional[UserRecord]:
        return await self._prepend(user_id, "heart_rate_entries", entry)

    async def add_chat_history(self, user_id: str, entry: ChatSummary) -> Optional[UserRecord]:
        return await self._prepend(user_id, "chat_history", entry)

    async def add_medication(self, user_id: str, medication: Medication) -> Optional[UserRecord]:
        async with self._lock:
            table = await self._read_table()
            record = table.get(user_id)
            if record is None:
                return None

            record.health_data.medications.append(medication)
            await self._write_table(table)
            return record

    # ------------------------------------------------------------------
    # Backup / reset
    # ------------------------------------------------------------------

    async def export_all(self) -> str:
        return self._serialize(await self._read_table())

    async def import_all(self, blob: str) -> bool:
        """Replace the table with blob. Leaves existing data untouched on any failure."""
        try:
            table = self._parse(blob)
        except (ValueError, TypeError, SchemaMigrationError) as e:
            logger.error(f"Failed to import user data: {e}")
            return False

        async with self._lock:
            try:
                await self.storage.set_item(self.storage_key, self._serialize(table))
            except StorageError as e:
                logger.error(f"Failed to import user data: {e}")
                return False

        logger.info(f"Imported {len(table)} user records")
        return True

    async def clear_all(self) -> None:
        async with self._lock:
            try:
                await self.storage.remove_item(self.storage_key)
            except StorageError as e:
                logger.error(f"Failed to clear user storage: {e}")
        self.session.clear()
        logger.info("Cleared all user records")
