"""Data access layer (repositories) for alerts and stored recommendations.

Repositories take an open session, return domain models rather than ORM
rows, and wrap SQLAlchemy errors in persistence exceptions.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from job_matcher.domain.models import Alert, AlertFrequency, ScoredJob
from job_matcher.utils.timestamps import utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import JobAlertModel, JobRecommendationModel, _format_datetime

logger = logging.getLogger(__name__)


class AlertRepository:
    """Repository for saved job alerts."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, alert_id: str) -> Optional[Alert]:
        """Retrieve an alert by id.

        Returns:
            Alert if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            alert_model = self.session.get(JobAlertModel, alert_id)
            return alert_model.to_domain() if alert_model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve alert: {e}") from e

    def add(self, alert: Alert) -> Alert:
        """Insert a new alert.

        created_at and updated_at default to now when unset.

        Raises:
            DataIntegrityError: If an alert with the same id exists
            PersistenceError: If database error occurs
        """
        now = utc_now()
        alert = alert.model_copy(
            update={
                "created_at": alert.created_at or now,
                "updated_at": alert.updated_at or now,
            }
        )
        try:
            alert_model = JobAlertModel.from_domain(alert)
            self.session.add(alert_model)
            self.session.flush()
            return alert_model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error adding alert {alert.id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to add alert due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error adding alert {alert.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to add alert: {e}") from e

    def list_due(self, frequency: AlertFrequency) -> List[Alert]:
        """Active alerts of one frequency that have a notification target.

        Alerts without a target (NULL or blank) are excluded, not reported.

        Raises:
            PersistenceError: If database error occurs
        """
        frequency = AlertFrequency(frequency)
        try:
            stmt = (
                select(JobAlertModel)
                .where(
                    JobAlertModel.is_active.is_(True),
                    JobAlertModel.frequency == frequency.value,
                    JobAlertModel.telegram_target.is_not(None),
                    func.trim(JobAlertModel.telegram_target) != "",
                )
                .order_by(JobAlertModel.created_at, JobAlertModel.id)
            )
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing due {frequency.value} alerts: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list due alerts: {e}") from e

    def update_last_dispatched(self, alert_id: str, timestamp: datetime) -> None:
        """Write only the last_dispatched_at field of one alert.

        Raises:
            RecordNotFoundError: If the alert doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(JobAlertModel)
                .where(JobAlertModel.id == alert_id)
                .values(last_dispatched_at=_format_datetime(timestamp))
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount == 0:
                raise RecordNotFoundError(f"Alert {alert_id} not found")

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating last_dispatched_at for alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update last_dispatched_at: {e}") from e

    def set_active(self, alert_id: str, is_active: bool) -> None:
        """Pause or resume an alert.

        Raises:
            RecordNotFoundError: If the alert doesn't exist
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                update(JobAlertModel)
                .where(JobAlertModel.id == alert_id)
                .values(is_active=is_active, updated_at=_format_datetime(utc_now()))
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount == 0:
                raise RecordNotFoundError(f"Alert {alert_id} not found")

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating is_active for alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update alert: {e}") from e


class RecommendationRepository:
    """Repository for scored jobs produced by the interactive matching flow."""

    def __init__(self, session: Session):
        self.session = session

    def replace_for_user(self, user_id: str, scored_jobs: Sequence[ScoredJob]) -> int:
        """Replace every stored recommendation of a user.

        Args:
            user_id: Candidate whose recommendations are replaced
            scored_jobs: New recommendations; entries for other users are rejected

        Returns:
            Number of rows written

        Raises:
            DataIntegrityError: If a job appears twice or belongs to another user
            PersistenceError: If database error occurs
        """
        foreign = [job.job_id for job in scored_jobs if job.user_id != user_id]
        if foreign:
            raise DataIntegrityError(
                f"Recommendations for user {user_id} include other users' jobs: {foreign}"
            )

        try:
            self.session.execute(
                delete(JobRecommendationModel).where(JobRecommendationModel.user_id == user_id)
            )
            self.session.add_all([JobRecommendationModel.from_domain(job) for job in scored_jobs])
            self.session.flush()
            logger.debug(f"Stored {len(scored_jobs)} recommendations for user {user_id}")
            return len(scored_jobs)
        except IntegrityError as e:
            logger.error(f"Integrity error storing recommendations for {user_id}: {e}", exc_info=True)
            raise DataIntegrityError(
                f"Failed to store recommendations due to constraint violation: {e}"
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Error storing recommendations for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to store recommendations: {e}") from e

    def list_for_user(self, user_id: str, limit: Optional[int] = None) -> List[ScoredJob]:
        """Stored recommendations of a user, best score first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(JobRecommendationModel)
                .where(JobRecommendationModel.user_id == user_id)
                .order_by(JobRecommendationModel.score.desc(), JobRecommendationModel.id)
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [row.to_domain() for row in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving recommendations for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve recommendations: {e}") from e
