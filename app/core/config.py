from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    API_V1_PREFIX: str = "/api/v1"

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # Database
    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* fields when set
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "live_chat"

    # Redis (optional, rate limiting only)
    REDIS_URL: str | None = None

    # Live chat
    CHAT_CHANNEL_PREFIX: str = "chat_"
    CHAT_ADMIN_EMAIL_MARKER: str = "admin"
    CHAT_SUPPORT_AGENT_NAME: str = "Support Agent"
    CHAT_HANDLE_FILE: str = ".chat_session.json"
    CHAT_SESSION_CREATE_LIMIT: int = 5
    CHAT_SESSION_CREATE_WINDOW_SECONDS: int = 15 * 60


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
