from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool
from clinic_copilot.core.config import settings
from clinic_copilot.core.logger import get_logger

logger = get_logger("database")


def _engine_options() -> dict:
    """Pool options depend on the driver: sqlite file databases get the default pool."""
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}

    ssl_config = {} if settings.is_development else {"ssl": "require"}
    return {
        "connect_args": {
            **ssl_config,
            "server_settings": {
                "application_name": "clinic_copilot",
                "jit": "off",
            },
            "command_timeout": 30,
        },
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    **_engine_options()
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
)

