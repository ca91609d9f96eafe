"""Exceptions raised by job-search adapters.

Adapters raise these from their HTTP layer; ``fetch`` catches them and
returns an empty result so one unavailable provider never fails an alert.
"""


class AdapterError(Exception):
    """Base exception for all adapter errors."""


class AdapterHTTPError(AdapterError):
    """HTTP request failed with a 4xx/5xx status or a transport error.

    ``status_code`` is 0 for transport errors (DNS, connection refused, ...).
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AdapterTimeoutError(AdapterError):
    """HTTP request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class AdapterResponseError(AdapterError):
    """Response body was not valid JSON or did not have the expected shape."""


class AdapterConfigurationError(AdapterError):
    """Adapter was constructed with invalid settings or missing credentials."""
