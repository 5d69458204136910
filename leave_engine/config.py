from decimal import Decimal
from typing import Literal, Self

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "ESS Leave Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://ess_leave:ess_leave@db:5432/ess_leave"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # Auto-approval scheduler
    auto_approve_days: int = 5
    urgent_reminder_days: int = 4
    sweep_interval_seconds: int = 3600

    # Company leave policy
    carry_forward_cap_days: Decimal = Decimal(6)
    approved_cancellation_cutoff_days: int = 0

    @model_validator(mode="after")
    def _validate_windows(self) -> Self:
        if self.urgent_reminder_days >= self.auto_approve_days:
            msg = "urgent_reminder_days must be less than auto_approve_days"
            raise ValueError(msg)
        return self


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
