# app/core/config.py
from functools import lru_cache

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables at runtime.

    These settings are used for:
    - DB connection
    - Rule cache sizing
    - Google Calendar access and the bot identity
    - Internal API key
    - SMTP notifications
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Meeting Bot Automation"
    APP_ENV: str = Field("local", description="Environment name: local/test/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for structlog output.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./meeting_bot.db",
        description="SQLAlchemy-compatible database URL",
    )

    INTERNAL_API_KEY: str | None = Field(
        default=None,
        description="API key required for hitting /internal endpoints",
    )

    # --- Rule engine ---
    RULE_CACHE_TTL_SECONDS: float = Field(
        default=300.0,
        description="How long a cached rule list for an account stays valid.",
    )
    RULE_CACHE_MAX_ENTRIES: int = Field(
        default=1024,
        description="Upper bound on the number of accounts kept in the rule cache.",
    )

    # --- Bot / calendar ---
    BOT_EMAIL: str = Field(
        default="meetingbot@yourdomain.com",
        description="Identity added as an attendee when a rule asks to invite the bot.",
    )
    GOOGLE_CALENDAR_BASE_URL: AnyHttpUrl | None = None
    GOOGLE_HTTP_TIMEOUT_SECONDS: float = 10.0
    SYNC_LOOKAHEAD_HOURS: int = Field(
        default=24,
        description="How far ahead calendar sync looks for meetings to evaluate.",
    )

    # --- SMTP / Email configuration ---
    SMTP_HOST: str | None = Field(
        default=None,
        description="SMTP server hostname for sending notifications.",
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port (usually 587 for TLS).",
    )
    SMTP_USERNAME: str | None = Field(
        default=None,
        description="SMTP username (if authentication is required).",
    )
    SMTP_PASSWORD: str | None = Field(
        default=None,
        description="SMTP password (if authentication is required).",
    )
    SMTP_USE_TLS: bool = Field(
        default=True,
        description="Whether to use STARTTLS when connecting to SMTP.",
    )
    SMTP_FROM_ADDRESS: str | None = Field(
        default=None,
        description="From address used in meeting notification emails.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
