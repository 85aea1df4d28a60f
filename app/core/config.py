from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./appointments.db"
    # Upper bound for a single store call before it is reported as transient
    store_timeout_seconds: float = 5.0

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Slot/appointment business rules
    slot_duration_minutes: int = 30
    booking_lookahead_days: int = 28
    # Wall-clock zone the branches' business hours are expressed in
    branch_timezone: str = "UTC"

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_host empty to disable sending.
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = "Branch Appointments"
    notification_max_attempts: int = 3
    notification_retry_delay_seconds: float = 1.0
    # Branding and contact in footer
    site_name: str = "Branch Appointments"
    contact_email: str = ""
    contact_phone: str = ""

    @field_validator("slot_duration_minutes")
    @classmethod
    def _slot_fits_hour(cls, value: int) -> int:
        # Slots start on the hour, so every hour must hold a whole number of them
        if value <= 0 or 60 % value:
            raise ValueError("slot_duration_minutes must divide 60")
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password and self.from_email)


settings = Settings()
