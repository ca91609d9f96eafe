"""Alert processing: fetch, re-score, format, dispatch, record."""

import contextvars
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from job_matcher.adapters.base import BaseAdapter
from job_matcher.config.models import AppConfig
from job_matcher.domain.models import Alert, AlertFrequency, CandidateProfile
from job_matcher.logging import get_logger
from job_matcher.logging.context import log_context
from job_matcher.matching.engine import MatchScorer, rank_postings
from job_matcher.notifications.formatter import MessageFormatter
from job_matcher.notifications.models import NotificationError
from job_matcher.notifications.service import NotificationDispatcher
from job_matcher.persistence.database import get_session
from job_matcher.persistence.exceptions import PersistenceError
from job_matcher.persistence.repositories import AlertRepository
from job_matcher.utils.timestamps import utc_now

from .models import AlertOutcome, AlertRunResult, BatchRunResult, FailureCategory

logger = get_logger(__name__, component="pipeline")


class AlertPipeline:
    """
    Runs the per-alert unit of work and batches of it.

    Each alert is processed as: fetch postings → re-score against the alert's
    own title and skills → keep the top N → format → dispatch → on delivery,
    write ``last_dispatched_at``. Every exception raised while processing one
    alert is caught and reported in its AlertRunResult, so one alert can
    never abort a batch.
    """

    def __init__(
        self,
        app_config: AppConfig,
        fetcher: BaseAdapter,
        dispatcher: NotificationDispatcher,
        formatter: Optional[MessageFormatter] = None,
        scorer: Optional[MatchScorer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the alert pipeline.

        Args:
            app_config: Application configuration
            fetcher: Job-search adapter used to fetch postings per alert
            dispatcher: Telegram dispatcher
            formatter: Message formatter (defaults to the dispatcher's)
            scorer: Match scoring engine
            clock: Source of "now" for relative dates and last_dispatched_at
        """
        self.app_config = app_config
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.formatter = formatter or dispatcher.formatter
        self.scorer = scorer or MatchScorer()
        self.clock = clock
        self._batch_locks: Dict[AlertFrequency, threading.Lock] = {
            frequency: threading.Lock() for frequency in AlertFrequency
        }

    def run_batch(self, frequency: AlertFrequency) -> BatchRunResult:
        """
        Process every due alert of one frequency.

        Due alerts are active, have this frequency and have a notification
        target. A batch that starts while another batch of the same frequency
        is still running is skipped.

        Returns:
            BatchRunResult with one AlertRunResult per due alert
        """
        frequency = AlertFrequency(frequency)
        run_started_at = utc_now()
        run_id = uuid4().hex

        lock = self._batch_locks[frequency]
        if not lock.acquire(blocking=False):
            with log_context(run_id=run_id, frequency=frequency.value):
                logger.warning(
                    "Alert batch skipped: previous batch still in progress",
                    extra={"event": "alert.batch.skipped", "reason": "lock_held"},
                )
            return BatchRunResult(
                frequency=frequency.value,
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id, frequency=frequency.value):
                try:
                    with get_session() as session:
                        alerts = AlertRepository(session).list_due(frequency)
                except PersistenceError as e:
                    logger.error(
                        f"Could not load due alerts: {e}",
                        extra={"event": "alert.batch.failed", "error": str(e)},
                        exc_info=True,
                    )
                    return BatchRunResult(
                        frequency=frequency.value,
                        run_started_at=run_started_at,
                        run_finished_at=utc_now(),
                        error_message=str(e),
                    )

                logger.info(
                    f"Processing {len(alerts)} {frequency.value} alerts",
                    extra={"event": "alert.batch.started", "alert_count": len(alerts)},
                )

                results = self._process_all(alerts)

                batch = BatchRunResult(
                    frequency=frequency.value,
                    run_started_at=run_started_at,
                    run_finished_at=utc_now(),
                    results=results,
                )
                logger.info(
                    "Alert batch completed",
                    extra={
                        "event": "alert.batch.completed",
                        "duration_ms": int(batch.total_duration_seconds * 1000),
                        "alert_count": len(results),
                        "sent": batch.count(AlertOutcome.SENT),
                        "no_matches": batch.count(AlertOutcome.NO_MATCHES),
                        "skipped": batch.count(AlertOutcome.SKIPPED),
                        "failed": batch.count(AlertOutcome.FAILED),
                    },
                )
                return batch
        finally:
            lock.release()

    def trigger_alert(self, alert_id: str) -> bool:
        """
        Process one alert on demand ("test my alert").

        An empty result still sends the "no new matches" message so the user
        can see the channel works. Returns True only when Telegram
        acknowledged a message.
        """
        with log_context(run_id=uuid4().hex, alert_id=alert_id, trigger="manual"):
            try:
                with get_session() as session:
                    alert = AlertRepository(session).get_by_id(alert_id)
            except PersistenceError as e:
                logger.error(
                    f"Could not load alert {alert_id}: {e}",
                    extra={"event": "alert.trigger.failed", "failure": FailureCategory.PERSISTENCE.value},
                    exc_info=True,
                )
                return False

            if alert is None:
                logger.warning(
                    f"Alert {alert_id} not found",
                    extra={"event": "alert.trigger.failed", "failure": FailureCategory.NOT_FOUND.value},
                )
                return False

            return self.process_alert(alert, send_empty=True).delivered

    def process_alert(self, alert: Alert, send_empty: bool = False) -> AlertRunResult:
        """
        Run the per-alert unit of work. Never raises.

        Args:
            alert: Alert to process
            send_empty: Send the "no new matches" message when nothing matched

        Returns:
            AlertRunResult describing the outcome
        """
        started = time.time()
        with log_context(alert_id=alert.id, user_id=alert.user_id):
            try:
                result = self._run(alert, send_empty)
            except Exception as e:
                logger.error(
                    f"Unexpected error processing alert {alert.id}: {e}",
                    extra={"event": "alert.run.error", "error_type": type(e).__name__},
                    exc_info=True,
                )
                result = AlertRunResult(
                    alert_id=alert.id,
                    outcome=AlertOutcome.FAILED,
                    failure=FailureCategory.UNEXPECTED,
                    error_message=str(e),
                )

            result.duration_seconds = time.time() - started
            logger.info(
                f"Alert processed: {result.outcome.value}",
                extra={
                    "event": "alert.run.completed",
                    "outcome": result.outcome.value,
                    "failure": result.failure.value if result.failure else None,
                    "fetched": result.fetched_count,
                    "included": result.included_count,
                    "delivered": result.delivered,
                    "duration_ms": int(result.duration_seconds * 1000),
                },
            )
            return result

    def _process_all(self, alerts: List[Alert]) -> List[AlertRunResult]:
        workers = min(self.app_config.advanced.max_concurrent_alerts, len(alerts))
        if workers <= 1:
            return [self.process_alert(alert) for alert in alerts]

        # Each task runs in a copy of the batch's context so log fields carry over.
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="alert") as executor:
            futures = [
                executor.submit(contextvars.copy_context().run, self.process_alert, alert)
                for alert in alerts
            ]
            return [future.result() for future in futures]

    def _run(self, alert: Alert, send_empty: bool) -> AlertRunResult:
        if not alert.has_target:
            logger.info(
                "Alert has no notification target, skipping",
                extra={"event": "alert.run.skipped", "reason": "no_target"},
            )
            return AlertRunResult(alert_id=alert.id, outcome=AlertOutcome.SKIPPED)

        try:
            postings = self.fetcher.fetch(alert)
        except Exception as e:
            logger.error(
                f"Fetching postings failed: {e}",
                extra={"event": "alert.fetch.failed", "error_type": type(e).__name__},
                exc_info=True,
            )
            return AlertRunResult(
                alert_id=alert.id,
                outcome=AlertOutcome.FAILED,
                failure=FailureCategory.FETCH,
                error_message=str(e),
            )

        ranked = rank_postings(
            self.scorer,
            CandidateProfile(skills=alert.skills),
            postings,
            target_title=alert.job_title,
            limit=self.app_config.alerts.top_jobs_per_alert,
        )
        result = AlertRunResult(
            alert_id=alert.id,
            outcome=AlertOutcome.SENT if ranked else AlertOutcome.NO_MATCHES,
            fetched_count=len(postings),
            included_count=len(ranked),
        )

        if not ranked and not send_empty:
            return result

        now = self.clock()
        try:
            message = self.formatter.format(
                alert.name, ranked, now=now, target=alert.telegram_target
            )
            result.delivered = self.dispatcher.dispatch(alert.telegram_target, message)
        except NotificationError as e:
            logger.error(
                f"Building notification failed: {e}",
                extra={"event": "alert.dispatch.error", "error_type": type(e).__name__},
                exc_info=True,
            )
            result.error_message = str(e)

        if not result.delivered:
            result.outcome = AlertOutcome.FAILED
            result.failure = FailureCategory.DISPATCH
            result.error_message = result.error_message or "notification was not delivered"
            return result

        # The "no new matches" message of a manual trigger does not count as a dispatch.
        if not ranked:
            return result

        try:
            with get_session() as session:
                AlertRepository(session).update_last_dispatched(alert.id, now)
        except PersistenceError as e:
            logger.error(
                f"Recording dispatch time failed: {e}",
                extra={"event": "alert.persist.failed", "error_type": type(e).__name__},
                exc_info=True,
            )
            result.outcome = AlertOutcome.FAILED
            result.failure = FailureCategory.PERSISTENCE
            result.error_message = str(e)

        return result
