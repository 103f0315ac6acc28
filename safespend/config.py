"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from safespend.domain.models import SpendSettings
from safespend.utils.date_utils import validate_hhmm


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (dedup markers, dismissed recommendations)
    database_url: str = "sqlite:///./safespend.db"

    # External Services
    notifier_base_url: str = "http://localhost:8003"

    # Service
    service_name: str = "safespend"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Reminder planning
    reminder_marker: str = "safespend"
    reminder_hour: int = 9
    reminder_minute: int = 0
    pre_due_days: int = 3
    horizon_days: int = 60
    overspend_delay_minutes: int = 1

    # Defaults for the per-user settings snapshot
    default_spend_window_days: int = 14
    default_buffer_mode: str = "fixed"
    default_buffer_value: Decimal = Decimal("50")
    default_buffer_percent: Decimal = Decimal("10")
    default_quiet_hours_start: Optional[str] = None
    default_quiet_hours_end: Optional[str] = None
    default_notifications_enabled: bool = True
    default_include_credit: bool = False

    @field_validator("default_quiet_hours_start", "default_quiet_hours_end")
    @classmethod
    def valid_clock_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_hhmm(v)

    def spend_settings(self) -> SpendSettings:
        """Build the default settings snapshot consumed by the engine"""
        return SpendSettings(
            spend_window_days=self.default_spend_window_days,
            buffer_mode=self.default_buffer_mode,
            buffer_value=self.default_buffer_value,
            buffer_percent=self.default_buffer_percent,
            quiet_hours_start=self.default_quiet_hours_start,
            quiet_hours_end=self.default_quiet_hours_end,
            notifications_enabled=self.default_notifications_enabled,
            include_credit_in_spendable=self.default_include_credit,
        )


settings = Settings()
