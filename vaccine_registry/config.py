"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Vaccine Registry", alias="APP_NAME")

    # Storage
    data_dir: Path = Field(default=Path("."), alias="DATA_DIR")
    citizens_file: str = Field(default="citizens.csv", alias="CITIZENS_FILE")
    centers_file: str = Field(default="centers.csv", alias="CENTERS_FILE")
    appointments_file: str = Field(default="appointments.csv", alias="APPOINTMENTS_FILE")

    # Reminders
    reminders_enabled: bool = Field(default=True, alias="REMINDERS_ENABLED")
    reminder_initial_delay_seconds: float = Field(
        default=2.0, gt=0, alias="REMINDER_INITIAL_DELAY_SECONDS"
    )
    reminder_period_seconds: float = Field(default=10.0, gt=0, alias="REMINDER_PERIOD_SECONDS")
    reminder_shutdown_timeout_seconds: float = Field(
        default=5.0,
        ge=0,
        alias="REMINDER_SHUTDOWN_TIMEOUT_SECONDS",
        description="Upper bound on how long shutdown waits for an in-flight tick",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")

    @property
    def citizens_path(self) -> Path:
        """Path of the citizens flat file."""
        return self.data_dir / self.citizens_file

    @property
    def centers_path(self) -> Path:
        """Path of the centers flat file."""
        return self.data_dir / self.centers_file

    @property
    def appointments_path(self) -> Path:
        """Path of the appointments flat file."""
        return self.data_dir / self.appointments_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
