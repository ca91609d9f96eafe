"""Database schema definition and ORM models.

Timestamps are stored as ISO 8601 UTC strings and lists as JSON columns.
Each ORM model converts to and from its domain model with
``to_domain()`` / ``from_domain()``.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text, UniqueConstraint, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from job_matcher.domain.models import Alert, AlertFrequency, ScoredJob
from job_matcher.logging import get_logger

logger = get_logger(__name__, component="database")

Base = declarative_base()


class JobAlertModel(Base):
    """ORM model for the job_alerts table."""

    __tablename__ = "job_alerts"

    id = Column(String(64), primary_key=True, nullable=False)
    user_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    job_title = Column(String(255), nullable=False, default="")
    location = Column(String(255), nullable=True)
    is_remote = Column(Boolean, nullable=False, default=False)
    skills = Column(JSON, nullable=False, default=list)
    frequency = Column(String(16), nullable=False, default=AlertFrequency.DAILY.value)
    telegram_target = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    last_dispatched_at = Column(String(50), nullable=True)
    created_at = Column(String(50), nullable=True)
    updated_at = Column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_job_alerts_due", "is_active", "frequency"),
        Index("idx_job_alerts_user", "user_id"),
    )

    def to_domain(self) -> Alert:
        return Alert(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            job_title=self.job_title or "",
            location=self.location,
            is_remote=bool(self.is_remote),
            skills=list(self.skills or []),
            frequency=AlertFrequency(self.frequency),
            telegram_target=self.telegram_target,
            is_active=bool(self.is_active),
            last_dispatched_at=_parse_datetime(self.last_dispatched_at),
            created_at=_parse_datetime(self.created_at),
            updated_at=_parse_datetime(self.updated_at),
        )

    @classmethod
    def from_domain(cls, alert: Alert) -> "JobAlertModel":
        return cls(
            id=alert.id,
            user_id=alert.user_id,
            name=alert.name,
            job_title=alert.job_title,
            location=alert.location,
            is_remote=alert.is_remote,
            skills=list(alert.skills),
            frequency=alert.frequency.value,
            telegram_target=alert.telegram_target,
            is_active=alert.is_active,
            last_dispatched_at=_format_datetime(alert.last_dispatched_at),
            created_at=_format_datetime(alert.created_at),
            updated_at=_format_datetime(alert.updated_at),
        )


class JobRecommendationModel(Base):
    """ORM model for the job_recommendations table.

    One row per (user, posting) scored by the interactive matching flow;
    the skill gap report is computed from these rows.
    """

    __tablename__ = "job_recommendations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    job_id = Column(String(255), nullable=False)
    title = Column(Text, nullable=False, default="")
    company = Column(String(255), nullable=False, default="")
    score = Column(Integer, nullable=False, default=0)
    matched_skills = Column(JSON, nullable=False, default=list)
    missing_skills = Column(JSON, nullable=False, default=list)
    breakdown = Column(JSON, nullable=False, default=dict)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_job_recommendations_user_job"),
        Index("idx_job_recommendations_user_score", "user_id", "score"),
    )

    def to_domain(self) -> ScoredJob:
        return ScoredJob(
            user_id=self.user_id,
            job_id=self.job_id,
            title=self.title,
            company=self.company,
            score=self.score,
            matched_skills=list(self.matched_skills or []),
            missing_skills=list(self.missing_skills or []),
            breakdown=dict(self.breakdown or {}),
            created_at=_parse_datetime(self.created_at),
        )

    @classmethod
    def from_domain(cls, scored_job: ScoredJob) -> "JobRecommendationModel":
        created_at = scored_job.created_at or datetime.now(timezone.utc)
        return cls(
            user_id=scored_job.user_id,
            job_id=scored_job.job_id,
            title=scored_job.title,
            company=scored_job.company,
            score=scored_job.score,
            matched_skills=list(scored_job.matched_skills),
            missing_skills=list(scored_job.missing_skills),
            breakdown=dict(scored_job.breakdown),
            created_at=_format_datetime(created_at),
        )


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string for storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back into an aware UTC datetime."""
    if dt_str is None or dt_str == "":
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(
            f"Database schema ready. Tables: {', '.join(tables)}",
            extra={"event": "database.schema.ready", "tables": tables},
        )
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
