"""Alert scheduler: daily and weekly cron triggers for alert batches."""

from .service import AlertScheduler

__all__ = [
    "AlertScheduler",
]
