"""Scheduler service that fires the daily and weekly alert batches."""

import threading
from datetime import datetime
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from job_matcher.config.models import ScheduleConfig
from job_matcher.domain.models import AlertFrequency
from job_matcher.logging import get_logger
from job_matcher.pipeline.models import BatchRunResult
from job_matcher.pipeline.runner import AlertPipeline

logger = get_logger(__name__, component="scheduler")

JOB_IDS = {
    AlertFrequency.DAILY: "alerts-daily",
    AlertFrequency.WEEKLY: "alerts-weekly",
}


class AlertScheduler:
    """
    Owns the two cron triggers that drive alert batches.

    Uses a BackgroundScheduler so the main thread stays free for signal
    handling. A batch that is still running when its trigger fires again is
    not started twice.
    """

    def __init__(
        self,
        pipeline: AlertPipeline,
        schedule_config: Optional[ScheduleConfig] = None,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            pipeline: Alert pipeline whose batches are triggered
            schedule_config: Trigger hours, weekday and time zone
            shutdown_event: Optional event set once the scheduler has stopped
        """
        self.pipeline = pipeline
        self.config = schedule_config or ScheduleConfig()
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": 3600,
            },
            timezone=self.config.timezone,
        )

    def _triggers(self) -> Dict[AlertFrequency, CronTrigger]:
        return {
            AlertFrequency.DAILY: CronTrigger(
                hour=self.config.daily_hour, minute=0, timezone=self.config.timezone
            ),
            AlertFrequency.WEEKLY: CronTrigger(
                day_of_week=self.config.weekly_day,
                hour=self.config.weekly_hour,
                minute=0,
                timezone=self.config.timezone,
            ),
        }

    def start(self) -> None:
        """Register both triggers and start the scheduler thread."""
        if self.scheduler.running:
            logger.warning("Scheduler already running", extra={"event": "scheduler.already_running"})
            return

        for frequency, trigger in self._triggers().items():
            self.scheduler.add_job(
                func=self._fire,
                trigger=trigger,
                args=[frequency],
                id=JOB_IDS[frequency],
                name=f"{frequency.value.capitalize()} job alerts",
                replace_existing=True,
            )

        self.scheduler.start()

        logger.info(
            "Scheduler started",
            extra={
                "event": "scheduler.started",
                "timezone": self.config.timezone,
                "next_run_times": {
                    frequency.value: run_time.isoformat() if run_time else None
                    for frequency, run_time in self.get_next_run_times().items()
                },
            },
        )

    def stop(self, wait: bool = False) -> None:
        """
        Stop both triggers.

        Args:
            wait: If True, wait for an in-flight batch to finish
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_times(self) -> Dict[AlertFrequency, Optional[datetime]]:
        """Next fire time of each trigger (None when not scheduled)."""
        run_times: Dict[AlertFrequency, Optional[datetime]] = {}
        for frequency, job_id in JOB_IDS.items():
            job = self.scheduler.get_job(job_id)
            run_times[frequency] = getattr(job, "next_run_time", None) if job else None
        return run_times

    def trigger_alert(self, alert_id: str) -> bool:
        """Process one alert now, in the calling thread."""
        logger.info(
            "Manual alert trigger",
            extra={"event": "scheduler.trigger.manual", "alert_id": alert_id},
        )
        return self.pipeline.trigger_alert(alert_id)

    def run_now(self, frequency: AlertFrequency) -> BatchRunResult:
        """Run one batch immediately, in the calling thread."""
        frequency = AlertFrequency(frequency)
        logger.info(
            f"Running {frequency.value} batch now",
            extra={"event": "scheduler.trigger.run_now", "frequency": frequency.value},
        )
        return self.pipeline.run_batch(frequency)

    def _fire(self, frequency: AlertFrequency) -> None:
        logger.info(
            f"{frequency.value.capitalize()} trigger fired",
            extra={"event": "scheduler.trigger.fired", "frequency": frequency.value},
        )
        try:
            self.pipeline.run_batch(frequency)
        except Exception as e:
            # Keep the trigger alive for the next run.
            logger.error(
                f"Alert batch crashed: {e}",
                extra={"event": "scheduler.trigger.error", "frequency": frequency.value},
                exc_info=True,
            )
