"""Adzuna job-search adapter."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from job_matcher.config.environment import EnvironmentConfig
from job_matcher.config.models import AppConfig, JobSearchConfig
from job_matcher.domain.models import Alert, JobPosting, SalaryRange
from job_matcher.logging import get_logger
from job_matcher.utils.text import coerce_text, strip_html
from job_matcher.utils.timestamps import parse_iso_datetime

from .base import BaseAdapter
from .exceptions import AdapterConfigurationError, AdapterError, AdapterResponseError

logger = get_logger(__name__, component="adapter")

QUERY_SKILL_COUNT = 3
SALARY_KEYS = ("salary_min", "salary_max")


def build_search_query(alert: Alert) -> str:
    """Job title followed by the first three skills, space separated."""
    parts = [alert.job_title, *alert.skills[:QUERY_SKILL_COUNT]]
    return " ".join(part for part in parts if part).strip()


def _display_value(value: Any) -> str:
    """Normalize a field that is either a plain string or a nested record.

    Adzuna nests company, location and category as objects
    (``{"display_name": ...}``, ``{"label": ...}``, ``{"area": [...]}``)
    but older payloads and test fixtures carry plain strings.
    """
    if value is None:
        return ""
    if isinstance(value, dict):
        for key in ("display_name", "label", "name"):
            text = coerce_text(value.get(key)).strip()
            if text:
                return text
        area = value.get("area")
        if isinstance(area, list) and area:
            return ", ".join(coerce_text(part) for part in area if part)
        return ""
    return coerce_text(value).strip()


class AdzunaAdapter(BaseAdapter):
    """Adapter for the Adzuna job-search API.

    API Details:
        Endpoint: {base_url}/{country}/search/1
        Method: GET
        Authentication: app_id/app_key query parameters
        Response: JSON object with a 'results' array
    """

    ADAPTER_NAME = "adzuna"
    DETAILS_URL = "https://www.adzuna.co.uk/jobs/details/{id}"

    def __init__(
        self,
        app_id: str,
        app_key: str,
        search_config: Optional[JobSearchConfig] = None,
        timeout: int = 10,
        user_agent: str = "JobMatcher/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the adapter.

        Raises:
            AdapterConfigurationError: If credentials are missing
        """
        if not app_id or not app_key:
            raise AdapterConfigurationError("Adzuna app_id and app_key are required")

        super().__init__(timeout=timeout, user_agent=user_agent, session=session)
        self.app_id = app_id
        self.app_key = app_key
        self.search_config = search_config or JobSearchConfig()

    @classmethod
    def from_config(
        cls, app_config: AppConfig, env_config: EnvironmentConfig
    ) -> "AdzunaAdapter":
        """Build an adapter from loaded configuration."""
        return cls(
            app_id=env_config.adzuna_app_id,
            app_key=env_config.adzuna_app_key,
            search_config=app_config.job_search,
            timeout=app_config.advanced.http_request_timeout,
            user_agent=app_config.advanced.user_agent,
        )

    @property
    def search_url(self) -> str:
        return f"{self.search_config.base_url}/{self.search_config.country}/search/1"

    def build_params(self, alert: Alert) -> Dict[str, Any]:
        """Query parameters for one alert."""
        return self.search_params(build_search_query(alert), alert.location, alert.is_remote)

    def search_params(
        self, query: str, location: Optional[str] = None, is_remote: bool = False
    ) -> Dict[str, Any]:
        """Query parameters for a free-text search."""
        params: Dict[str, Any] = {
            "app_id": self.app_id,
            "app_key": self.app_key,
            "results_per_page": self.search_config.results_per_page,
            "what": query,
            "max_days_old": self.search_config.max_days_old,
            "sort_by": self.search_config.sort_by,
        }
        if location:
            params["where"] = location
        if is_remote:
            params["remote"] = "true"
        return params

    def fetch(self, alert: Alert) -> list[JobPosting]:
        """Fetch recent postings for an alert.

        Any provider failure (non-2xx status, timeout, transport error,
        malformed body) is logged and yields an empty list, so the alert is
        treated as having no new jobs.

        Args:
            alert: Alert whose title, skills, location and remote flag drive the query

        Returns:
            Normalized postings in provider order
        """
        return self._search(self.build_params(alert), alert_id=alert.id)

    def search(
        self, query: str, location: Optional[str] = None, is_remote: bool = False
    ) -> list[JobPosting]:
        """Fetch postings for a free-text query, failing open like fetch()."""
        return self._search(self.search_params(query, location, is_remote))

    def _search(self, params: Dict[str, Any], alert_id: Optional[str] = None) -> list[JobPosting]:
        logger.info(
            "Fetching jobs from Adzuna",
            extra={
                "event": "adapter.fetch.started",
                "adapter": self.ADAPTER_NAME,
                "alert_id": alert_id,
                "query": params["what"],
            },
        )

        try:
            response = self._make_request(
                self.search_url, params=params, redact_params=("app_id", "app_key")
            )
            if not isinstance(response, dict):
                raise AdapterResponseError(
                    f"Expected JSON object response, got {type(response).__name__}"
                )
            results = response.get("results") or []
            if not isinstance(results, list):
                raise AdapterResponseError(
                    f"Expected 'results' field to be array, got {type(results).__name__}"
                )
        except AdapterError as e:
            logger.warning(
                "Adzuna fetch failed, treating as no results",
                extra={
                    "event": "adapter.fetch.failed",
                    "adapter": self.ADAPTER_NAME,
                    "alert_id": alert_id,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            return []

        postings = []
        for record in results:
            if not isinstance(record, dict):
                continue
            try:
                postings.append(self._transform_job(record))
            except (ValueError, TypeError) as e:
                logger.warning(
                    "Failed to transform Adzuna job",
                    extra={
                        "event": "adapter.transform.failed",
                        "adapter": self.ADAPTER_NAME,
                        "job_id": coerce_text(record.get("id")),
                        "error": str(e),
                    },
                )

        logger.info(
            "Fetched jobs from Adzuna",
            extra={
                "event": "adapter.fetch.completed",
                "adapter": self.ADAPTER_NAME,
                "alert_id": alert_id,
                "count": len(postings),
            },
        )
        return postings

    def _transform_job(self, record: Dict[str, Any]) -> JobPosting:
        """Map one Adzuna result record to a JobPosting."""
        external_id = coerce_text(record.get("id")).strip()
        url = coerce_text(record.get("redirect_url")).strip()
        if not url and external_id:
            url = self.DETAILS_URL.format(id=external_id)

        return JobPosting(
            external_id=external_id,
            title=strip_html(record.get("title")),
            company=_display_value(record.get("company")),
            location=_display_value(record.get("location")),
            description=strip_html(record.get("description")),
            category=_display_value(record.get("category")),
            contract_type=coerce_text(record.get("contract_type")),
            url=url,
            posted_at=parse_iso_datetime(coerce_text(record.get("created"))),
            salary=self._parse_salary(record),
        )

    @staticmethod
    def _parse_salary(record: Dict[str, Any]) -> Optional[SalaryRange]:
        """SalaryRange when the record exposes salary fields, otherwise None."""
        if not any(key in record for key in SALARY_KEYS):
            return None
        return SalaryRange(
            minimum=record.get("salary_min"),
            maximum=record.get("salary_max"),
            is_predicted=record.get("salary_is_predicted") or False,
        )
