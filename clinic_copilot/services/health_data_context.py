"""
Health Data Context - the signed-in user's health record, in memory.

Every read goes through `health_data`; every write goes through one of the
mutators below, which update the in-memory snapshot first and then persist
through the record store. There is no rollback: if the store drops a write,
memory and storage disagree until the next reload.

With nobody signed in the mutators do nothing and return None.
"""

import datetime as dt
import math
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from clinic_copilot.core.logger import get_logger
from clinic_copilot.enums import MoodLevel
from clinic_copilot.exceptions.errors import HealthDataValidationError
from clinic_copilot.schemas.health_record import (
    ChatSummary,
    HealthSnapshot,
    HeartRateEntry,
    Medication,
    MoodEntry,
    SleepEntry,
    normalize_fields,
)
from clinic_copilot.schemas.user_schemas import AuthUser
from clinic_copilot.services.record_store import RecordStore

logger = get_logger("health_data_context")


class HealthDataContext:
    def __init__(self, store: RecordStore):
        self.store = store
        self.user: Optional[AuthUser] = None
        self.health_data = HealthSnapshot()

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    async def on_identity_changed(self, user: Optional[AuthUser]) -> None:
        self.user = user
        await self.reload()

    async def reload(self) -> HealthSnapshot:
        """Replace the snapshot wholesale with what the store holds."""
        if not self.user_id:
            self.health_data = HealthSnapshot()
            return self.health_data

        record = await self.store.get_user(self.user_id)
        if record is None:
            logger.warning(f"No stored record for {self.user_id}; using defaults")
            self.health_data = HealthSnapshot()
        else:
            self.health_data = HealthSnapshot.from_record(record.health_data)
        return self.health_data

    def _skip(self, operation: str) -> None:
        logger.debug(f"{operation} skipped: no user signed in")

    async def update_health_data(self, fields: Dict[str, Any]) -> Optional[HealthSnapshot]:
        if not self.user_id:
            self._skip("update_health_data")
            return None

        updates = normalize_fields(HealthSnapshot, fields)
        merged = {name: getattr(self.health_data, name) for name in HealthSnapshot.model_fields}
        merged.update(updates)
        try:
            updated = HealthSnapshot.model_validate(merged)
        except ValidationError as e:
            raise HealthDataValidationError(f"Invalid health data: {e.errors()[0]['msg']}") from e

        self.health_data = updated
        await self.store.update_health_data(self.user_id, updated.persisted_fields())
        return updated

    async def save_chat_summary(
        self,
        summary: str,
        key_findings: List[str],
        recommendations: List[str],
    ) -> Optional[ChatSummary]:
        if not self.user_id:
            self._skip("save_chat_summary")
            return None

        entry = ChatSummary(
            summary=summary,
            key_findings=list(key_findings),
            recommendations=list(recommendations),
        )
        self.health_data = self.health_data.model_copy(
            update={"chat_history": [entry, *self.health_data.chat_history]}
        )
        await self.store.add_chat_history(self.user_id, entry)
        return entry

    async def add_mood_entry(self, mood: int, journal_entry: Optional[str] = None) -> Optional[MoodEntry]:
        if not self.user_id:
            self._skip("add_mood_entry")
            return None

        if isinstance(mood, bool) or mood not in {level.value for level in MoodLevel}:
            raise HealthDataValidationError(f"Mood must be one of -2, -1, 0, 1, 2 (got {mood!r})")

        entry = MoodEntry(
            mood=MoodLevel(mood),
            journal_entries=[journal_entry] if journal_entry else [],
        )
        self.health_data = self.health_data.model_copy(
            update={"mood_entries": [entry, *self.health_data.mood_entries]}
        )
        await self.store.add_mood_entry(self.user_id, entry)
        return entry

    async def add_sleep_entry(self, hours_slept: float) -> Optional[SleepEntry]:
        if not self.user_id:
            self._skip("add_sleep_entry")
            return None

        if (
            isinstance(hours_slept, bool)
            or not isinstance(hours_slept, (int, float))
            or not math.isfinite(hours_slept)
            or not 0 < hours_slept <= 24
        ):
            raise HealthDataValidationError(
                f"Hours slept must be greater than 0 and at most 24 (got {hours_slept!r})"
            )

        entry = SleepEntry(hours_slept=hours_slept)
        self.health_data = self.health_data.model_copy(
            update={"sleep_entries": [entry, *self.health_data.sleep_entries]}
        )
        await self.store.add_sleep_entry(self.user_id, entry)
        return entry

    def get_daily_mood_average(self, day: dt.date) -> int:
        moods = [int(entry.mood) for entry in self.health_data.mood_entries if entry.date == day]
        if not moods:
            return 0
        # halves round up, e.g. -1.5 -> -1
        return math.floor(sum(moods) / len(moods) + 0.5)

    async def update_heart_rate_metrics(
        self,
        current_hr: int,
        resting_hr: int,
        hrv: float,
    ) -> Optional[HealthSnapshot]:
        if not self.user_id:
            self._skip("update_heart_rate_metrics")
            return None

        merged = {name: getattr(self.health_data, name) for name in HealthSnapshot.model_fields}
        merged.update(heart_rate=current_hr, resting_heart_rate=resting_hr, heart_rate_variability=hrv)
        try:
            updated = HealthSnapshot.model_validate(merged)
        except ValidationError as e:
            raise HealthDataValidationError(f"Invalid heart rate metrics: {e.errors()[0]['msg']}") from e

        self.health_data = updated
        # current heart rate stays in memory
        await self.store.update_health_data(
            self.user_id,
            {
                "resting_heart_rate": updated.resting_heart_rate,
                "heart_rate_variability": updated.heart_rate_variability,
            },
        )
        return updated

    async def add_heart_rate_entry(
        self,
        resting_hr: int,
        hrv: float,
        calories_burned: int,
    ) -> Optional[HeartRateEntry]:
        if not self.user_id:
            self._skip("add_heart_rate_entry")
            return None

        try:
            entry = HeartRateEntry(resting_hr=resting_hr, hrv=hrv, calories_burned=calories_burned)
        except ValidationError as e:
            raise HealthDataValidationError(f"Invalid heart rate entry: {e.errors()[0]['msg']}") from e

        self.health_data = self.health_data.model_copy(
            update={"heart_rate_entries": [entry, *self.health_data.heart_rate_entries]}
        )
        await self.store.add_heart_rate_entry(self.user_id, entry)
        return entry

    async def add_medication(
        self,
        name: str,
        dosage: str,
        frequency: str,
        times_taken: Optional[List[str]] = None,
        color: str = "bg-blue-500",
    ) -> Optional[Medication]:
        if not self.user_id:
            self._skip("add_medication")
            return None

        medication = Medication(
            name=name,
            dosage=dosage,
            frequency=frequency,
            times_taken=[time for time in (times_taken or []) if time.strip()],
            color=color,
        )
        self.health_data = self.health_data.model_copy(
            update={"medications": [*self.health_data.medications, medication]}
        )
        await self.store.add_medication(self.user_id, medication)
        return medication

    async def update_medication(self, medication_id: str, fields: Dict[str, Any]) -> Optional[Medication]:
        """Edit one medication in place. Returns None when signed out or the id is unknown."""
        if not self.user_id:
            self._skip("update_medication")
            return None

        current = next((med for med in self.health_data.medications if med.id == medication_id), None)
        if current is None:
            return None

        changes = normalize_fields(Medication, fields)
        changes.pop("id", None)
        if "times_taken" in changes:
            changes["times_taken"] = [time for time in changes["times_taken"] if time.strip()]
        updated = Medication.model_validate({**current.model_dump(), **changes})

        medications = [updated if med.id == medication_id else med for med in self.health_data.medications]
        await self.update_health_data({"medications": medications})
        return updated

    async def remove_medication(self, medication_id: str) -> bool:
        if not self.user_id:
            self._skip("remove_medication")
            return False

        medications = [med for med in self.health_data.medications if med.id != medication_id]
        if len(medications) == len(self.health_data.medications):
            return False

        await self.update_health_data({"medications": medications})
        return True
