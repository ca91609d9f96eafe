"""Rendering of job alerts into Telegram messages.

Messages are rendered from Jinja2 templates in MarkdownV2 ("rich")
encoding. Every free-text value passes through the ``md`` filter, which
escapes each MarkdownV2 control character with a backslash; URLs inside link
targets pass through ``md_url``, which escapes only the closing parenthesis.

Rendered bodies longer than MAX_MESSAGE_LENGTH are cut after escaping and
end with a fixed truncation marker. ``to_plain`` converts a rich body into
unformatted text for the fallback send when Telegram rejects the markup.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from job_matcher.config.models import MessagingConfig
from job_matcher.domain.models import JobPosting, SalaryRange
from job_matcher.logging import get_logger
from job_matcher.matching.models import RankedPosting
from job_matcher.utils.timestamps import ensure_utc, utc_now

from .models import Encoding, NotificationMessage, NotificationTemplateError

logger = get_logger(__name__, component="notification")

MAX_MESSAGE_LENGTH = 4000
TRUNCATION_MARKER = "\n\n_\\[message truncated\\]_"
MIN_DISPLAYED_SCORE = 5

_SPECIAL_CHARS = re.compile(r"([\\_*\[\]()~`>#+\-=|{}.!])")

# One pass over a rich body: links, escaped characters, markup characters.
_PLAIN_PATTERN = re.compile(
    r"\[((?:\\.|[^\]\\])*)\]\(((?:\\.|[^)\\])*)\)"
    r"|\\(.)"
    r"|\|\|"
    r"|[*_~`]",
    re.DOTALL,
)
_ESCAPED_CHAR = re.compile(r"\\(.)", re.DOTALL)


def escape_markdown(value: Any) -> str:
    """Escape every MarkdownV2 special character in ``value``."""
    if value is None:
        return ""
    return _SPECIAL_CHARS.sub(r"\\\1", str(value))


def escape_url(value: Any) -> str:
    """Escape a URL for use as an inline link target."""
    if value is None:
        return ""
    return str(value).replace(")", "\\)")


def to_plain_text(body: str) -> str:
    """Strip MarkdownV2 escapes and markup from a rich body.

    Bold, italic, underline, strikethrough, spoiler and code markers are
    removed; ``[text](url)`` becomes ``text: url``; ``\\x`` becomes ``x``.
    """

    def _replace(match: re.Match) -> str:
        link_text, link_url, escaped = match.group(1), match.group(2), match.group(3)
        if link_url is not None:
            text = _ESCAPED_CHAR.sub(r"\1", link_text)
            url = _ESCAPED_CHAR.sub(r"\1", link_url)
            return f"{text}: {url}" if text else url
        if escaped is not None:
            return escaped
        return ""

    return _PLAIN_PATTERN.sub(_replace, body)


def _close_markup(text: str) -> str:
    """Make a hard-cut rich fragment well formed.

    Drops a dangling backslash and any link left unfinished, then closes
    bold/italic spans that are still open.
    """
    open_spans: List[str] = []
    link_start: Optional[int] = None
    spans_at_link: List[str] = []
    in_url = False

    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\":
            if i == len(text) - 1:
                text = text[:-1]
                break
            i += 2
            continue
        if in_url:
            if char == ")":
                in_url = False
                link_start = None
        elif char == "[":
            link_start = i
            spans_at_link = list(open_spans)
        elif char == "]" and link_start is not None and text[i + 1 : i + 2] == "(":
            in_url = True
            i += 1
        elif char in "*_":
            if char in open_spans:
                open_spans.remove(char)
            else:
                open_spans.append(char)
        i += 1

    if link_start is not None:
        text = text[:link_start]
        open_spans = spans_at_link
    return text + "".join(reversed(open_spans))


def truncate_body(body: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut an escaped body to ``limit`` characters and append the marker.

    The body is a header, blank-line separated job entries and a footer.
    When a later entry straddles the limit the cut moves back to the end of
    the last complete entry. When the first entry straddles it, that entry
    is hard cut instead so the message still carries at least one job.
    """
    if len(body) <= limit:
        return body

    cut = body[:limit]
    header_end = cut.find("\n\n")
    boundary = cut.rfind("\n\n")
    if header_end >= 0 and boundary > header_end:
        return cut[:boundary] + TRUNCATION_MARKER

    closed = _close_markup(cut)
    while len(closed) > limit:
        cut = cut[: len(cut) - (len(closed) - limit)]
        closed = _close_markup(cut)
    return closed + TRUNCATION_MARKER


def format_salary(salary: Optional[SalaryRange], currency: str = "£") -> Optional[str]:
    """Human-readable salary range; None when the posting has no salary fields."""
    if salary is None:
        return None

    def _amount(value: float) -> str:
        return f"{currency}{value:,.0f}"

    if salary.minimum and salary.maximum:
        return f"{_amount(salary.minimum)} – {_amount(salary.maximum)}"
    if salary.minimum:
        return f"From {_amount(salary.minimum)}"
    if salary.maximum:
        return f"Up to {_amount(salary.maximum)}"
    return "Competitive"


def format_posted_date(posted_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Relative label for a posting date.

    Whole elapsed days decide the label: 0 (or a future date) is "Today",
    1 "Yesterday", up to 6 "N days ago", then the date as "1 Nov 2025".
    """
    posted = ensure_utc(posted_at)
    if posted is None:
        return "Recently"

    current = ensure_utc(now) or utc_now()
    days = math.floor((current - posted).total_seconds() / 86400)

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return f"{posted.day} {posted.strftime('%b')} {posted.year}"


def score_tier_emoji(score: int) -> str:
    """Emoji for the match band of a score."""
    if score >= 80:
        return "🎯"
    if score >= 60:
        return "👍"
    if score >= 40:
        return "🤔"
    return "📝"


class MessageFormatter:
    """Builds Telegram messages from ranked jobs.

    Templates are loaded from the ``job_matcher.notifications`` package and
    cached by Jinja2 after first use.
    """

    def __init__(
        self,
        messaging_config: Optional[MessagingConfig] = None,
        max_length: int = MAX_MESSAGE_LENGTH,
    ):
        self.config = messaging_config or MessagingConfig()
        self.max_length = max_length

        self.env = Environment(
            loader=PackageLoader("job_matcher.notifications", "templates"),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["md"] = escape_markdown
        self.env.filters["md_url"] = escape_url

    def format(
        self,
        alert_name: str,
        ranked_jobs: Sequence[RankedPosting],
        now: Optional[datetime] = None,
        target: Optional[str] = None,
    ) -> NotificationMessage:
        """Render an alert notification in rich encoding.

        Args:
            alert_name: Alert label shown in the header
            ranked_jobs: Jobs in rank order; empty renders the "no new matches" message
            now: Reference time for relative dates (defaults to current UTC time)
            target: Telegram chat id or @username the message is meant for

        Returns:
            NotificationMessage whose body is at most max_length characters
            plus the truncation marker

        Raises:
            NotificationTemplateError: If a template fails to render
        """
        if not ranked_jobs:
            body = self._render("no_matches.md.j2", {"alert_name": alert_name})
            return NotificationMessage(body=body, encoding=Encoding.RICH, target=target)

        current = now or utc_now()
        context = {
            "alert_name": alert_name,
            "jobs": [self._job_context(item.posting, item.final_score, current) for item in ranked_jobs],
            "branding": self.config.branding,
            "dashboard_url": self.config.dashboard_url,
        }
        body = self._render("job_alert.md.j2", context)

        if len(body) > self.max_length:
            logger.info(
                "Message exceeds length limit, truncating",
                extra={
                    "event": "notification.truncated",
                    "length": len(body),
                    "limit": self.max_length,
                },
            )
            body = truncate_body(body, self.max_length)

        return NotificationMessage(body=body, encoding=Encoding.RICH, target=target)

    def format_connection_test(
        self, bot_username: Optional[str] = None, target: Optional[str] = None
    ) -> NotificationMessage:
        """Render the message that verifies a user's channel set-up."""
        if bot_username and not bot_username.startswith("@"):
            bot_username = f"@{bot_username}"
        body = self._render("connection_test.md.j2", {"bot_username": bot_username})
        return NotificationMessage(body=body, encoding=Encoding.RICH, target=target)

    def to_plain(self, message: NotificationMessage) -> NotificationMessage:
        """Re-encode a rich message as plain text."""
        if message.encoding == Encoding.PLAIN:
            return message
        return NotificationMessage(
            body=to_plain_text(message.body), encoding=Encoding.PLAIN, target=message.target
        )

    def _job_context(self, posting: JobPosting, score: int, now: datetime) -> Dict[str, Any]:
        return {
            "title": posting.title or "No title",
            "company": posting.company or "Unknown Company",
            "location": posting.location or "Remote",
            "salary": format_salary(posting.salary, self.config.currency_symbol),
            "posted": format_posted_date(posting.posted_at, now),
            "score_label": f"{max(score, MIN_DISPLAYED_SCORE)}%",
            "tier_emoji": score_tier_emoji(score),
            "url": posting.url,
        }

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            return self.env.get_template(template_name).render(context).strip()
        except TemplateError as e:
            logger.error(
                f"Template rendering failed: {e}",
                extra={"event": "notification.template_error", "template": template_name},
                exc_info=True,
            )
            raise NotificationTemplateError(f"Template rendering failed: {e}") from e
