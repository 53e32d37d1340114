from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    contributions_api_url: str = "https://github-contributions-api.jogruber.de/v4"
    request_timeout_seconds: float = 15.0
    week_start: int = Field(default=0, ge=0, le=6)
    tooltip_offset_px: float = 8.0
    tooltip_padding_px: float = 12.0
    session_ttl_seconds: int = 1800
    max_sessions: int = 1000
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
