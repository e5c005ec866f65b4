"""
Per-process object graph.

Built once at startup and attached to app.state; routes reach it through
the get_container dependency instead of module-level globals.
"""

from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_copilot.core.logger import get_logger
from clinic_copilot.services.auth_context import AuthContext
from clinic_copilot.services.health_assistant_service import HealthAssistantService
from clinic_copilot.services.health_data_context import HealthDataContext
from clinic_copilot.services.in_flight_guard import InFlightGuard
from clinic_copilot.services.key_value_storage import KeyValueStorage
from clinic_copilot.services.record_store import RecordStore
from clinic_copilot.services.session_pointer import SessionPointer

logger = get_logger("app_container")


class AppContainer:
    def __init__(
        self,
        storage: KeyValueStorage,
        assistant: Optional[HealthAssistantService] = None,
        storage_key: Optional[str] = None,
    ):
        self.session = SessionPointer()
        self.record_store = RecordStore(storage, self.session, storage_key=storage_key)
        self.auth = AuthContext(self.record_store, self.session)
        self.health_data = HealthDataContext(self.record_store)
        self.auth.subscribe(self.health_data.on_identity_changed)
        self.assistant = assistant or HealthAssistantService()
        self.chat_guard = InFlightGuard()


def build_container(
    session_factory: async_sessionmaker[AsyncSession],
    assistant: Optional[HealthAssistantService] = None,
) -> AppContainer:
    container = AppContainer(KeyValueStorage(session_factory), assistant=assistant)
    logger.info(f"Container ready (storage key '{container.record_store.storage_key}')")
    return container


def get_container(request: Request) -> AppContainer:
    """FastAPI dependency returning the process container."""
    return request.app.state.container
