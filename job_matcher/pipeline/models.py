"""Data models for alert run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AlertOutcome(str, Enum):
    """What happened to one alert in one run."""

    SENT = "sent"
    NO_MATCHES = "no_matches"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureCategory(str, Enum):
    """Step at which a failed alert run stopped."""

    FETCH = "fetch"
    DISPATCH = "dispatch"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


@dataclass
class AlertRunResult:
    """
    Result of processing a single alert.

    Attributes:
        alert_id: Alert that was processed
        outcome: sent, no_matches, skipped or failed
        failure: Failure category when outcome is failed
        fetched_count: Postings returned by the job-search provider
        included_count: Jobs included in the notification (top N)
        delivered: Whether Telegram acknowledged a message
        error_message: Short description of the failure, if any
        duration_seconds: Time spent on this alert
    """

    alert_id: str
    outcome: AlertOutcome
    failure: Optional[FailureCategory] = None
    fetched_count: int = 0
    included_count: int = 0
    delivered: bool = False
    error_message: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.outcome == AlertOutcome.FAILED


@dataclass
class BatchRunResult:
    """
    Aggregate results of one scheduled (or run-now) batch.

    Attributes:
        frequency: daily or weekly
        run_started_at: UTC timestamp when the batch began
        run_finished_at: UTC timestamp when the batch completed
        results: Per-alert results, in completion order
        skipped: True when another batch of the same frequency was still running
        error_message: Set when the due alerts could not be loaded
    """

    frequency: str
    run_started_at: datetime
    run_finished_at: datetime
    results: List[AlertRunResult] = field(default_factory=list)
    skipped: bool = False
    error_message: Optional[str] = None

    @property
    def total_duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()

    def count(self, outcome: AlertOutcome) -> int:
        """Number of alerts that ended with ``outcome``."""
        return sum(1 for result in self.results if result.outcome == outcome)

    @property
    def had_errors(self) -> bool:
        return self.error_message is not None or any(result.failed for result in self.results)
