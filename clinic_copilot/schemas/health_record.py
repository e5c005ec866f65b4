"""
Persisted record shapes.

Records are stored with camelCase keys (the layout the web client has always
written) and exposed to Python with snake_case attribute names.
"""

import datetime as dt
from typing import Any, Dict, List, Literal, Optional, Type

import cuid
from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from clinic_copilot.enums import MoodLevel, Theme, PrivacyLevel


def new_entry_id() -> str:
    return cuid.cuid()


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def utc_today() -> dt.date:
    return utc_now().date()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_fields(model_cls: Type[BaseModel], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase or snake_case keys onto field names; unknown keys are dropped."""
    lookup = {}
    for name, info in model_cls.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return {lookup[key]: value for key, value in fields.items() if key in lookup}


class MoodEntry(CamelModel):
    kind: Literal["mood"] = "mood"
    id: str = Field(default_factory=new_entry_id)
    date: dt.date = Field(default_factory=utc_today)
    mood: MoodLevel
    emoji: str = ""
    journal_entries: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def sync_emoji(self):
        # emoji is a fixed function of mood
        self.emoji = self.mood.emoji
        return self


class SleepEntry(CamelModel):
    kind: Literal["sleep"] = "sleep"
    id: str = Field(default_factory=new_entry_id)
    date: dt.date = Field(default_factory=utc_today)
    hours_slept: float = Field(..., gt=0, le=24, allow_inf_nan=False)


class HeartRateEntry(CamelModel):
    kind: Literal["heart_rate"] = "heart_rate"
    id: str = Field(default_factory=new_entry_id)
    date: dt.date = Field(default_factory=utc_today)
    resting_hr: int = Field(..., alias="restingHR")
    hrv: float
    calories_burned: int


class ChatSummary(CamelModel):
    id: str = Field(default_factory=new_entry_id)
    date: dt.datetime = Field(default_factory=utc_now)
    summary: str
    key_findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class Medication(CamelModel):
    id: str = Field(default_factory=new_entry_id)
    name: str
    dosage: str
    frequency: str
    times_taken: List[str] = Field(default_factory=list)
    color: str = "bg-blue-500"


class HealthRecord(CamelModel):
    resting_heart_rate: int = 72
    heart_rate_variability: float = 45.0
    calories_burned: int = 1850
    medications: List[Medication] = Field(default_factory=list)
    mood_entries: List[MoodEntry] = Field(default_factory=list)
    sleep_entries: List[SleepEntry] = Field(default_factory=list)
    heart_rate_entries: List[HeartRateEntry] = Field(default_factory=list)
    chat_history: List[ChatSummary] = Field(default_factory=list)


class Preferences(CamelModel):
    theme: Theme = Theme.SYSTEM
    notifications: bool = True
    privacy_level: PrivacyLevel = PrivacyLevel.PRIVATE


class UserRecord(CamelModel):
    id: str
    name: str
    email: str
    picture: Optional[str] = None
    created_at: dt.datetime
    last_login: dt.datetime
    health_data: HealthRecord = Field(default_factory=HealthRecord)
    preferences: Preferences = Field(default_factory=Preferences)


# Fields of HealthSnapshot that are mirrored into HealthRecord
PERSISTED_HEALTH_FIELDS = tuple(HealthRecord.model_fields)


class HealthSnapshot(CamelModel):
    """
    The in-memory view of one user's health record.

    heart_rate is the transient current reading and is never persisted;
    mood_score is derived from the newest mood entry.
    """

    heart_rate: int = 72
    resting_heart_rate: int = 58
    heart_rate_variability: float = 42.0
    calories_burned: int = 2150
    mood_entries: List[MoodEntry] = Field(default_factory=list)
    sleep_entries: List[SleepEntry] = Field(default_factory=list)
    heart_rate_entries: List[HeartRateEntry] = Field(default_factory=list)
    medications: List[Medication] = Field(default_factory=list)
    chat_history: List[ChatSummary] = Field(default_factory=list)

    @computed_field(alias="moodScore")
    @property
    def mood_score(self) -> int:
        if not self.mood_entries:
            return 0
        return int(self.mood_entries[0].mood) + 2

    @classmethod
    def from_record(cls, record: HealthRecord) -> "HealthSnapshot":
        return cls(
            heart_rate=record.resting_heart_rate,
            **{name: getattr(record, name) for name in PERSISTED_HEALTH_FIELDS},
        )

    def persisted_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in PERSISTED_HEALTH_FIELDS}
