"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/job_matcher.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        adzuna_app_id: str,
        adzuna_app_key: str,
        telegram_bot_token: str,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.adzuna_app_id = adzuna_app_id
        self.adzuna_app_key = adzuna_app_key
        self.telegram_bot_token = telegram_bot_token
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.environment = environment or "production"

    def __repr__(self) -> str:
        # Credentials are never rendered.
        return (
            f"EnvironmentConfig(database_url={self.database_url!r}, "
            f"log_level={self.log_level!r}, environment={self.environment!r})"
        )


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Required environment variables:
    - ADZUNA_APP_ID: Adzuna application id
    - ADZUNA_APP_KEY: Adzuna application key
    - TELEGRAM_BOT_TOKEN: Telegram bot token used for sendMessage

    Optional environment variables:
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: SQLite database URL (default: sqlite:///./data/job_matcher.db)
    - ENVIRONMENT: Deployment name added to every log record (default: production)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    adzuna_app_id = (os.getenv("ADZUNA_APP_ID") or "").strip()
    adzuna_app_key = (os.getenv("ADZUNA_APP_KEY") or "").strip()
    telegram_bot_token = (os.getenv("TELEGRAM_BOT_TOKEN") or "").strip()

    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")
    environment = os.getenv("ENVIRONMENT")

    if not adzuna_app_id:
        errors.append("Missing required environment variable: ADZUNA_APP_ID")
    if not adzuna_app_key:
        errors.append("Missing required environment variable: ADZUNA_APP_KEY")
    if not telegram_bot_token:
        errors.append("Missing required environment variable: TELEGRAM_BOT_TOKEN")
    elif ":" not in telegram_bot_token:
        errors.append(
            "Invalid TELEGRAM_BOT_TOKEN: expected the '<bot id>:<secret>' format issued by BotFather"
        )

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url and not database_url.startswith("sqlite"):
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Only sqlite URLs are supported."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Create Adzuna credentials at https://developer.adzuna.com/",
                "Create a Telegram bot with @BotFather to obtain a token",
            ],
        )

    return EnvironmentConfig(
        adzuna_app_id=adzuna_app_id,
        adzuna_app_key=adzuna_app_key,
        telegram_bot_token=telegram_bot_token,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
        environment=environment,
    )
