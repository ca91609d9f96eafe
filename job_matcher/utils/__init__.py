"""Utility functions for text normalization and time handling."""

from .text import (
    build_searchable_text,
    clean_skills,
    coerce_text,
    display_skill,
    normalize_text,
    strip_html,
    tokenize,
)
from .timestamps import ensure_utc, parse_iso_datetime, utc_now

__all__ = [
    # Text
    "coerce_text",
    "normalize_text",
    "tokenize",
    "build_searchable_text",
    "clean_skills",
    "display_skill",
    "strip_html",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
]
