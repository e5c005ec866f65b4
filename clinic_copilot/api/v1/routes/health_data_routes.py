"""
Health Data Routes

Every route needs a bearer token; a token for someone other than the
signed-in user is refused. Writes made while nobody is signed in are accepted
and ignored, and the response reports signedIn=false with the unchanged snapshot.
"""
import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from clinic_copilot.api.v1.controllers.health_data_controller import HealthDataController
from clinic_copilot.middlewares.clerk_auth import get_caller_session
from clinic_copilot.schemas.health_data_schemas import (
    ChatSummaryCreateRequest,
    HealthDataResponse,
    HealthDataUpdateRequest,
    HeartRateEntryRequest,
    HeartRateMetricsRequest,
    HistoryDayResponse,
    MedicationRequest,
    MedicationUpdateRequest,
    MoodAverageResponse,
    MoodEntryRequest,
    SleepEntryRequest,
)
from clinic_copilot.schemas.health_record import utc_today
from clinic_copilot.utils.app_container import AppContainer, get_container

router = APIRouter(
    prefix="/health-data",
    tags=["Health Data"],
    dependencies=[Depends(get_caller_session)]
)


@router.get("", summary="Get health data", response_model=HealthDataResponse)
async def get_health_data(
    refresh: bool = Query(False, description="Reload from storage before answering"),
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.get_health_data(container, refresh)


@router.patch("", summary="Update health data", response_model=HealthDataResponse)
async def update_health_data(
    payload: HealthDataUpdateRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.update_health_data(container, payload)


@router.post("/mood", summary="Log mood", response_model=HealthDataResponse)
async def add_mood_entry(
    payload: MoodEntryRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.add_mood_entry(container, payload)


@router.get("/mood/average", summary="Daily mood average", response_model=MoodAverageResponse)
async def mood_average(
    date: Optional[dt.date] = Query(None, description="Day to average (defaults to today, UTC)"),
    container: AppContainer = Depends(get_container)
):
    return HealthDataController.mood_average(container, date or utc_today())


@router.post("/sleep", summary="Log sleep", response_model=HealthDataResponse)
async def add_sleep_entry(
    payload: SleepEntryRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.add_sleep_entry(container, payload)


@router.post("/heart-rate", summary="Log heart rate", response_model=HealthDataResponse)
async def add_heart_rate_entry(
    payload: HeartRateEntryRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.add_heart_rate_entry(container, payload)


@router.put("/heart-rate/metrics", summary="Update heart rate metrics", response_model=HealthDataResponse)
async def update_heart_rate_metrics(
    payload: HeartRateMetricsRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.update_heart_rate_metrics(container, payload)


@router.post("/chat-summaries", summary="Save a chat summary", response_model=HealthDataResponse)
async def save_chat_summary(
    payload: ChatSummaryCreateRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.save_chat_summary(container, payload)


@router.post("/medications", summary="Add medication", response_model=HealthDataResponse)
async def add_medication(
    payload: MedicationRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.add_medication(container, payload)


@router.patch("/medications/{medication_id}", summary="Edit medication", response_model=HealthDataResponse)
async def update_medication(
    medication_id: str,
    payload: MedicationUpdateRequest,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.update_medication(container, medication_id, payload)


@router.delete("/medications/{medication_id}", summary="Remove medication", response_model=HealthDataResponse)
async def remove_medication(
    medication_id: str,
    container: AppContainer = Depends(get_container)
):
    return await HealthDataController.remove_medication(container, medication_id)


@router.get("/history", summary="Day-by-day history", response_model=List[HistoryDayResponse])
async def history(container: AppContainer = Depends(get_container)):
    """Mood, sleep and heart-rate entries grouped per day, newest first, with an assistant prompt per day."""
    return HealthDataController.history(container)
