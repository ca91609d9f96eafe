"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    schedule = config_dict.get("schedule", {})
    if isinstance(schedule, dict):
        for key in ("daily_hour", "weekly_hour"):
            hour = schedule.get(key)
            if isinstance(hour, int) and 0 <= hour < 6:
                warning_messages.append(
                    f"schedule.{key}={hour} sends notifications during the night"
                )

    job_search = config_dict.get("job_search", {})
    if isinstance(job_search, dict):
        max_days_old = job_search.get("max_days_old", 1)
        if isinstance(max_days_old, int) and max_days_old > 7:
            warning_messages.append(
                f"Large job_search.max_days_old ({max_days_old}) may resend postings users already saw"
            )

    advanced = config_dict.get("advanced", {})
    if isinstance(advanced, dict):
        concurrency = advanced.get("max_concurrent_alerts", 1)
        if isinstance(concurrency, int) and concurrency > 8:
            warning_messages.append(
                f"High max_concurrent_alerts ({concurrency}) may trigger provider rate limits"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
