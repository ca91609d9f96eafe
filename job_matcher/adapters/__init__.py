"""Job-search provider adapters."""

from .adzuna import AdzunaAdapter, build_search_query
from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

__all__ = [
    "AdzunaAdapter",
    "BaseAdapter",
    "build_search_query",
    "AdapterError",
    "AdapterHTTPError",
    "AdapterTimeoutError",
    "AdapterResponseError",
    "AdapterConfigurationError",
]
