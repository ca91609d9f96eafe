"""Configuration management module for Job Matcher."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config
from .models import (
    AdvancedConfig,
    AlertsConfig,
    AppConfig,
    JobSearchConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MessagingConfig,
    ScheduleConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ScheduleConfig",
    "JobSearchConfig",
    "MessagingConfig",
    "AlertsConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
