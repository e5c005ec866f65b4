"""Shared test fixtures."""

import os

# Must be set before clinic_copilot.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("CLERK_SECRET_KEY", "sk_test_placeholder")

from collections.abc import AsyncIterator
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinic_copilot.database.base import Base
from clinic_copilot.schemas.user_schemas import VerifiedIdentity
from clinic_copilot.services.health_assistant_service import HealthAssistantService
from clinic_copilot.services.key_value_storage import KeyValueStorage
from clinic_copilot.services.record_store import RecordStore
from clinic_copilot.services.session_pointer import SessionPointer
from clinic_copilot.utils.app_container import AppContainer


def completion(content):
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


@pytest.fixture
def make_completion():
    return completion


@pytest.fixture
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def storage(session_factory) -> KeyValueStorage:
    return KeyValueStorage(session_factory)


@pytest.fixture
def session_pointer() -> SessionPointer:
    return SessionPointer()


@pytest.fixture
def store(storage, session_pointer) -> RecordStore:
    return RecordStore(storage, session_pointer)


@pytest.fixture
def identity() -> VerifiedIdentity:
    return VerifiedIdentity(email="a@x.com", name="Ada Lovelace", picture="https://img.example/ada.png")


@pytest.fixture
def llm_client():
    """AsyncMock standing in for openai.AsyncOpenAI."""
    client = AsyncMock()
    client.chat.completions.create = AsyncMock(return_value=completion("Hello there!"))
    return client


@pytest.fixture
def assistant(llm_client) -> HealthAssistantService:
    return HealthAssistantService(api_key="test-key", client=llm_client)


@pytest.fixture
def container(storage, assistant) -> AppContainer:
    return AppContainer(storage, assistant=assistant)


@pytest.fixture
async def signed_in_container(container, identity) -> AppContainer:
    await container.auth.sign_in(identity)
    return container


async def identity_from_test_token(request: Request) -> VerifiedIdentity:
    """Stands in for Clerk: the bearer token is the caller's email."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization token")
    email = auth_header[len("Bearer "):]
    return VerifiedIdentity(email=email, name="Ada Lovelace")


@pytest.fixture
async def app(container):
    """The app with the test container installed and Clerk replaced."""
    from clinic_copilot.main import app
    from clinic_copilot.middlewares.clerk_auth import get_verified_identity

    app.state.container = container
    app.dependency_overrides[get_verified_identity] = identity_from_test_token

    yield app

    app.dependency_overrides.clear()
    app.state.container = None


@pytest.fixture
async def client(app) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client calling as a@x.com."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer a@x.com"},
    ) as http_client:
        yield http_client


@pytest.fixture
async def anonymous_client(app) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client sending no token."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
async def other_client(app) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client calling with a valid token for a different user."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": "Bearer b@x.com"},
    ) as http_client:
        yield http_client
