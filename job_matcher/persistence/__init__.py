"""Persistence layer: SQLite record store for alerts and recommendations.

Example usage:
    >>> from job_matcher.persistence import init_database, get_session, AlertRepository
    >>> init_database("sqlite:///./data/job_matcher.db")
    >>> with get_session() as session:
    ...     alert = AlertRepository(session).get_by_id("alert-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import AlertRepository, RecommendationRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "AlertRepository",
    "RecommendationRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
