"""
Versioning for the serialized user table.

Blobs are written as {"version": N, "users": {...}}. Older layouts are
upgraded one step at a time through MIGRATIONS, keyed by source version.

Version 1 is the bare {user_id: record} mapping written before the envelope
existed; its mood/sleep/heart-rate entries carry no kind tag.
"""

import copy
from typing import Any, Callable, Dict

CURRENT_SCHEMA_VERSION = 2


class SchemaMigrationError(ValueError):
    pass


def _tag_entries(record: Dict[str, Any]) -> Dict[str, Any]:
    health = record.get("healthData")
    if not isinstance(health, dict):
        return record

    for collection, kind in (
        ("moodEntries", "mood"),
        ("sleepEntries", "sleep"),
        ("heartRateEntries", "heart_rate"),
    ):
        for entry in health.get(collection) or []:
            if isinstance(entry, dict):
                entry.setdefault("kind", kind)
    return record


def _v1_to_v2(payload: Dict[str, Any]) -> Dict[str, Any]:
    users = {
        user_id: _tag_entries(record) if isinstance(record, dict) else record
        for user_id, record in payload.items()
    }
    return {"version": 2, "users": users}


MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    1: _v1_to_v2,
}


def detect_version(payload: Any) -> int:
    if not isinstance(payload, dict):
        raise SchemaMigrationError("Stored user table is not a mapping")

    version = payload.get("version")
    if isinstance(version, int) and not isinstance(version, bool) and isinstance(payload.get("users"), dict):
        return version
    return 1


def migrate(payload: Any) -> Dict[str, Any]:
    """Return the users mapping of payload, upgraded to CURRENT_SCHEMA_VERSION."""
    version = detect_version(payload)
    if version > CURRENT_SCHEMA_VERSION:
        raise SchemaMigrationError(
            f"Stored user table has version {version}, newest supported is {CURRENT_SCHEMA_VERSION}"
        )

    envelope = copy.deepcopy(payload)
    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise SchemaMigrationError(f"No migration from version {version}")
        envelope = step(envelope)
        version = envelope["version"]

    return envelope["users"]


def wrap(users: Dict[str, Any]) -> Dict[str, Any]:
    return {"version": CURRENT_SCHEMA_VERSION, "users": users}
