"""Configuration management for the SAM.gov sync engine."""

from typing import Sequence

from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_VARS = [
    "SAMGOV_API_KEY",
]


class Config(BaseSettings):
    """Application configuration from environment variables."""

    # Required by every command that calls SAM.gov
    samgov_api_key: str = ""

    # Optional
    govscout_db: str = "govscout.db"
    max_api_calls: int = 10
    polling_interval_minutes: int = 60
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


def validate_config(required: Sequence[str] = REQUIRED_VARS) -> Config:
    """Load and validate configuration from environment.

    Raises ValueError with descriptive message listing ALL missing
    required variables (not just the first one). Malformed values raise
    pydantic's ValidationError.
    """
    config = Config()
    missing = [var for var in required if not getattr(config, var.lower())]
    if missing:
        names = ", ".join(missing)
        raise ValueError(
            f"Missing required environment variable(s): {names}. "
            "Please set them in your .env file or environment."
        )
    return config


def load_config(require_api_key: bool = True) -> Config:
    """Load configuration from environment (startup entry point).

    ``require_api_key=False`` is for commands that never call SAM.gov.
    """
    return validate_config(REQUIRED_VARS if require_api_key else ())
