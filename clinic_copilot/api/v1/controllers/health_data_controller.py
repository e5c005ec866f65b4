import datetime as dt
from typing import List

from fastapi import HTTPException, status

from clinic_copilot.core.logger import get_logger
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
from clinic_copilot.services.health_history import group_history_by_day
from clinic_copilot.utils.app_container import AppContainer

logger = get_logger("health_data_controller")


class HealthDataController:
    """Controller for the signed-in user's health data. Signed-out writes are no-ops."""

    @staticmethod
    def _state(container: AppContainer) -> HealthDataResponse:
        return HealthDataResponse(
            signed_in=container.health_data.user is not None,
            health_data=container.health_data.health_data,
        )

    @staticmethod
    async def get_health_data(container: AppContainer, refresh: bool = False) -> HealthDataResponse:
        if refresh:
            await container.health_data.reload()
        return HealthDataController._state(container)

    @staticmethod
    async def update_health_data(container: AppContainer, payload: HealthDataUpdateRequest) -> HealthDataResponse:
        await container.health_data.update_health_data(payload.model_dump(exclude_unset=True))
        return HealthDataController._state(container)

    @staticmethod
    async def add_mood_entry(container: AppContainer, payload: MoodEntryRequest) -> HealthDataResponse:
        await container.health_data.add_mood_entry(payload.mood, payload.journal_entry)
        return HealthDataController._state(container)

    @staticmethod
    async def add_sleep_entry(container: AppContainer, payload: SleepEntryRequest) -> HealthDataResponse:
        await container.health_data.add_sleep_entry(payload.hours_slept)
        return HealthDataController._state(container)

    @staticmethod
    async def add_heart_rate_entry(container: AppContainer, payload: HeartRateEntryRequest) -> HealthDataResponse:
        await container.health_data.add_heart_rate_entry(
            payload.resting_hr, payload.hrv, payload.calories_burned
        )
        return HealthDataController._state(container)

    @staticmethod
    async def update_heart_rate_metrics(container: AppContainer, payload: HeartRateMetricsRequest) -> HealthDataResponse:
        await container.health_data.update_heart_rate_metrics(
            payload.current_hr, payload.resting_hr, payload.hrv
        )
        return HealthDataController._state(container)

    @staticmethod
    async def save_chat_summary(container: AppContainer, payload: ChatSummaryCreateRequest) -> HealthDataResponse:
        await container.health_data.save_chat_summary(
            payload.summary, payload.key_findings, payload.recommendations
        )
        return HealthDataController._state(container)

    @staticmethod
    async def add_medication(container: AppContainer, payload: MedicationRequest) -> HealthDataResponse:
        await container.health_data.add_medication(**payload.model_dump())
        return HealthDataController._state(container)

    @staticmethod
    async def update_medication(
        container: AppContainer,
        medication_id: str,
        payload: MedicationUpdateRequest,
    ) -> HealthDataResponse:
        updated = await container.health_data.update_medication(
            medication_id, payload.model_dump(exclude_unset=True)
        )
        if updated is None and container.health_data.user is not None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Medication not found"
            )
        return HealthDataController._state(container)

    @staticmethod
    async def remove_medication(container: AppContainer, medication_id: str) -> HealthDataResponse:
        removed = await container.health_data.remove_medication(medication_id)
        if not removed and container.health_data.user is not None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Medication not found"
            )
        return HealthDataController._state(container)

    @staticmethod
    def mood_average(container: AppContainer, day: dt.date) -> MoodAverageResponse:
        return MoodAverageResponse(
            date=day,
            average=container.health_data.get_daily_mood_average(day),
        )

    @staticmethod
    def history(container: AppContainer) -> List[HistoryDayResponse]:
        return [
            HistoryDayResponse(
                date=group.date,
                entries=[entry.model_dump(mode="json", by_alias=True) for entry in group.entries],
                moods_by_emoji={
                    emoji: [entry.model_dump(mode="json", by_alias=True) for entry in entries]
                    for emoji, entries in group.moods_by_emoji().items()
                },
                prompt=group.assistant_prompt(),
            )
            for group in group_history_by_day(container.health_data.health_data)
        ]
