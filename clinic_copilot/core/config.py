import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # OpenRouter (OpenAI-compatible) upstream
    OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
    OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/")
    LLM_MODEL = os.getenv("LLM_MODEL", "anthropic/claude-3.5-sonnet")
    LLM_TIMEOUT = _float_env("LLM_TIMEOUT", 60.0)
    LLM_APP_TITLE = os.getenv("LLM_APP_TITLE", "Clinic Copilot Health Assistant")

    # Clerk Configuration
    CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY")

    # Record storage
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./clinic_copilot.db")
    STORAGE_KEY = os.getenv("STORAGE_KEY", "health-ai-users")
    # Browsers cap local storage at roughly 5 MiB per origin
    STORAGE_QUOTA_BYTES = _int_env("STORAGE_QUOTA_BYTES", 5 * 1024 * 1024)

    # Logging
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000,http://127.0.0.1:8000",
        ).split(",")
        if origin.strip()
    ]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
