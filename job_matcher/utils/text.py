"""Text normalization shared by scoring, skill gap analysis and adapters.

Every text field that crosses a component boundary goes through
``coerce_text`` first, so downstream code never has to handle None or
non-string values.
"""

import html
import re
from typing import Any, Iterable, List

_TOKEN_SPLIT = re.compile(r"[\s\-_]+")


def coerce_text(value: Any) -> str:
    """Return ``value`` as a string; None becomes ``""``."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def normalize_text(value: Any) -> str:
    """Coerce, trim and lower-case a value."""
    return coerce_text(value).strip().lower()


def tokenize(text: Any, min_length: int = 0) -> List[str]:
    """Split lower-cased text on whitespace, hyphen and underscore runs.

    Args:
        text: Text to split
        min_length: Keep only tokens strictly longer than this

    Returns:
        Tokens in their original order
    """
    return [
        token
        for token in _TOKEN_SPLIT.split(normalize_text(text))
        if token and len(token) > min_length
    ]


def build_searchable_text(*parts: Any) -> str:
    """Lower-cased, space-joined concatenation of ``parts``."""
    return " ".join(coerce_text(part) for part in parts).lower()


def clean_skills(skills: Iterable[Any]) -> List[str]:
    """Trim skills and drop blanks, preserving order and original spelling."""
    cleaned = []
    for skill in skills or []:
        text = coerce_text(skill).strip()
        if text:
            cleaned.append(text)
    return cleaned


def display_skill(skill: str) -> str:
    """Capitalise the first character of a lower-cased skill."""
    return skill[:1].upper() + skill[1:]


def strip_html(html_text: Any) -> str:
    """Remove HTML tags and entities from text.

    Line breaks and paragraph ends become newlines, other tags become spaces,
    horizontal whitespace is collapsed and runs of blank lines are capped at one.
    """
    text = coerce_text(html_text)
    if not text:
        return ""

    text = html.unescape(text)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()

