"""Base adapter class with shared HTTP handling for job-search providers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from job_matcher.domain.models import Alert, JobPosting
from job_matcher.logging import get_logger

from .exceptions import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

logger = get_logger(__name__, component="adapter")


class BaseAdapter(ABC):
    """Base class for job-search adapters.

    Owns a requests.Session with the configured User-Agent and turns every
    failure mode of an HTTP call into a typed AdapterError.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    def __init__(
        self,
        timeout: int = 10,
        user_agent: str = "JobMatcher/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize adapter.

        Args:
            timeout: HTTP request timeout in seconds (1-120)
            user_agent: User-Agent header for requests
            session: Optional pre-built session (tests inject mocks here)

        Raises:
            AdapterConfigurationError: If timeout is out of range or user_agent is empty
        """
        if not 1 <= timeout <= 120:
            raise AdapterConfigurationError(
                f"Timeout must be between 1 and 120 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise AdapterConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @abstractmethod
    def fetch(self, alert: Alert) -> list[JobPosting]:
        """Fetch postings matching an alert.

        Implementations never raise for provider failures; they log and
        return an empty list.
        """

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        redact_params: tuple = (),
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body.

        Args:
            url: URL to request
            method: HTTP method
            params: Query parameters
            json_data: JSON body
            redact_params: Parameter names whose values must not be logged

        Returns:
            Parsed JSON response

        Raises:
            AdapterHTTPError: On 4xx/5xx status or transport failure
            AdapterTimeoutError: On request timeout
            AdapterResponseError: On a body that is not JSON
        """
        loggable = {
            key: ("***" if key in redact_params else value)
            for key, value in (params or {}).items()
        }

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "adapter.fetch.request",
                    "method": method,
                    "url": url,
                    "params": loggable,
                    "timeout": self.timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "adapter.fetch.timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise AdapterTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {type(e).__name__}",
                extra={
                    "event": "adapter.fetch.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise AdapterHTTPError(
                f"Request to {url} failed: {type(e).__name__}", status_code=0, url=url
            ) from e

        if response.status_code >= 400:
            is_server_error = response.status_code >= 500
            logger.log(
                logging.WARNING if is_server_error else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "adapter.fetch.http_error",
                    "status_code": response.status_code,
                    "url": url,
                    "body": response.text[:500],
                },
            )
            raise AdapterHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={
                    "event": "adapter.fetch.invalid_json",
                    "url": url,
                },
            )
            raise AdapterResponseError(f"Failed to parse JSON response from {url}: {e}") from e

        logger.debug(
            "HTTP request succeeded",
            extra={
                "event": "adapter.fetch.succeeded",
                "status_code": response.status_code,
                "url": url,
            },
        )
        return data
