import math

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationMissing, InvalidArgument


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "AirBox Monitor"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Storage
    database_path: str = Field(default="airbox.db")

    # Remote feed (both required)
    airbox_url: str = ""
    airbox_token: str = ""
    feed_timeout_seconds: float = 30.0

    # Polling
    fetch_interval_minutes: float = 1

    # Email alerts (Resend)
    resend_api_key: str = ""
    resend_from_email: str = "onboarding@resend.dev"
    resend_api_url: str = "https://api.resend.com/emails"
    mail_timeout_seconds: float = 10.0

    log_file: str = "airbox.log"


REQUIRED_KEYS = ("airbox_url", "airbox_token")


def validate_settings(s: Settings) -> None:
    """Fail fast at startup when the environment is incomplete."""
    missing = [key.upper() for key in REQUIRED_KEYS if not getattr(s, key)]
    if missing:
        raise ConfigurationMissing(missing)

    interval = s.fetch_interval_minutes
    if not math.isfinite(interval) or interval <= 0:
        raise InvalidArgument(f"FETCH_INTERVAL_MINUTES must be positive, got {interval}")


settings = Settings()
