from pydantic import Field
from typing import Optional, List
import datetime as dt

from clinic_copilot.schemas.health_record import (
    CamelModel,
    ChatSummary,
    HealthSnapshot,
    HeartRateEntry,
    Medication,
    MoodEntry,
    SleepEntry,
)


class HealthDataUpdateRequest(CamelModel):
    """Partial update of the health snapshot. moodScore is derived and not accepted."""

    heart_rate: Optional[int] = None
    resting_heart_rate: Optional[int] = None
    heart_rate_variability: Optional[float] = None
    calories_burned: Optional[int] = None
    mood_entries: Optional[List[MoodEntry]] = None
    sleep_entries: Optional[List[SleepEntry]] = None
    heart_rate_entries: Optional[List[HeartRateEntry]] = None
    medications: Optional[List[Medication]] = None
    chat_history: Optional[List[ChatSummary]] = None


class MoodEntryRequest(CamelModel):
    # range is checked by the health data context so rejections never mutate state
    mood: int
    journal_entry: Optional[str] = Field(None, max_length=2000)


class SleepEntryRequest(CamelModel):
    hours_slept: float


class HeartRateEntryRequest(CamelModel):
    resting_hr: int = Field(..., alias="restingHR", ge=20, le=250)
    hrv: float = Field(..., ge=0)
    calories_burned: int = Field(..., ge=0)


class HeartRateMetricsRequest(CamelModel):
    current_hr: int = Field(..., alias="currentHR", ge=20, le=250)
    resting_hr: int = Field(..., alias="restingHR", ge=20, le=250)
    hrv: float = Field(..., ge=0)


class ChatSummaryCreateRequest(CamelModel):
    summary: str = Field(..., min_length=1)
    key_findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class MedicationRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=200)
    frequency: str = Field(..., min_length=1, max_length=200)
    times_taken: List[str] = Field(default_factory=list)
    color: str = "bg-blue-500"


class MedicationUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    dosage: Optional[str] = Field(None, min_length=1, max_length=200)
    frequency: Optional[str] = Field(None, min_length=1, max_length=200)
    times_taken: Optional[List[str]] = None
    color: Optional[str] = None


class HealthDataResponse(CamelModel):
    signed_in: bool
    health_data: HealthSnapshot


class MoodAverageResponse(CamelModel):
    date: dt.date
    average: int


class HistoryDayResponse(CamelModel):
    date: dt.date
    entries: List[dict]
    moods_by_emoji: dict
    prompt: str
