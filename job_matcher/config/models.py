"""Configuration schema models using Pydantic."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ScheduleConfig(BaseModel):
    """Wall-clock times of the daily and weekly alert triggers."""

    timezone: str = Field("Europe/London", description="IANA time zone both triggers are anchored to")
    daily_hour: int = Field(9, ge=0, le=23, description="Hour of the daily trigger")
    weekly_day: str = Field("mon", description="Weekday of the weekly trigger (mon..sun)")
    weekly_hour: int = Field(9, ge=0, le=23, description="Hour of the weekly trigger")

    @field_validator("weekly_day")
    @classmethod
    def normalize_weekday(cls, v: str) -> str:
        """Accept full or abbreviated weekday names in any case."""
        day = v.strip().lower()[:3]
        if day not in WEEKDAYS:
            raise ValueError(f"weekly_day must be one of {', '.join(WEEKDAYS)}, got: {v}")
        return day

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject unknown time zone names early instead of at scheduler start."""
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        name = v.strip()
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return name


class JobSearchConfig(BaseModel):
    """Settings for the Adzuna job-search provider."""

    base_url: str = Field(
        "https://api.adzuna.com/v1/api/jobs", description="Adzuna jobs API root"
    )
    country: str = Field("gb", min_length=2, max_length=2, description="Adzuna country code")
    results_per_page: int = Field(20, ge=1, le=50, description="Result count per fetch")
    max_days_old: int = Field(1, ge=1, le=30, description="Only postings newer than this")
    sort_by: str = Field("date", description="Provider sort order")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended safely."""
        return v.strip().rstrip("/")

    @field_validator("country")
    @classmethod
    def lowercase_country(cls, v: str) -> str:
        """Country codes are lower-case in Adzuna URLs."""
        return v.strip().lower()


class MessagingConfig(BaseModel):
    """Settings for the Telegram messaging provider and message footer."""

    api_base_url: str = Field("https://api.telegram.org", description="Telegram Bot API root")
    branding: str = Field("✨ Powered by Job Matcher", description="First footer line")
    dashboard_url: str = Field(
        "your-website.com/dashboard/alerts", description="Where users configure alerts"
    )
    disable_web_page_preview: bool = Field(True, description="Suppress link previews")
    currency_symbol: str = Field("£", description="Symbol used in salary ranges")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended safely."""
        return v.strip().rstrip("/")


class AlertsConfig(BaseModel):
    """Per-alert processing settings."""

    top_jobs_per_alert: int = Field(5, ge=1, le=20, description="Jobs included per notification")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        10, ge=1, le=120, description="Timeout for provider HTTP calls (seconds)"
    )
    user_agent: str = Field(
        "JobMatcher/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_concurrent_alerts: int = Field(
        1, ge=1, le=16, description="Alerts processed in parallel within one batch"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for Job Matcher."""

    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    job_search: JobSearchConfig = Field(default_factory=JobSearchConfig)
    messaging: MessagingConfig = Field(default_factory=MessagingConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

    def trigger_summary(self) -> str:
        """Human-readable description of both trigger times."""
        s = self.schedule
        return (
            f"daily at {s.daily_hour:02d}:00, weekly on {s.weekly_day} at "
            f"{s.weekly_hour:02d}:00 ({s.timezone})"
        )
