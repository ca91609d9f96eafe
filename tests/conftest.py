"""Shared fixtures for the Job Matcher test suite."""

from datetime import datetime, timezone

import pytest

from job_matcher.domain.models import Alert, AlertFrequency, JobPosting
from job_matcher.logging import clear_log_context
from job_matcher.persistence.database import close_database, init_database


@pytest.fixture(autouse=True)
def reset_log_context():
    """Keep logging context from leaking between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def memory_db():
    """Fresh in-memory SQLite database for one test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def fixed_now():
    return datetime(2025, 11, 10, 9, 0, tzinfo=timezone.utc)


def make_posting(**overrides) -> JobPosting:
    """Build a JobPosting with sensible defaults."""
    fields = {
        "external_id": "job-1",
        "title": "Software Engineer",
        "company": "Example Ltd",
        "location": "London",
        "description": "",
        "category": "IT Jobs",
        "url": "https://www.adzuna.co.uk/jobs/details/job-1",
    }
    fields.update(overrides)
    return JobPosting(**fields)


def make_alert(**overrides) -> Alert:
    """Build an active daily Alert with a Telegram target."""
    fields = {
        "id": "alert-1",
        "user_id": "user-1",
        "name": "Python roles",
        "job_title": "python developer",
        "skills": ["Python", "Django"],
        "frequency": AlertFrequency.DAILY,
        "telegram_target": "@alice",
        "is_active": True,
    }
    fields.update(overrides)
    return Alert(**fields)


@pytest.fixture
def posting_factory():
    return make_posting


@pytest.fixture
def alert_factory():
    return make_alert
