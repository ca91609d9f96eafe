"""Data models and exceptions for the notification layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""


class NotificationTemplateError(NotificationError):
    """Raised when a message template cannot be rendered."""


class TelegramError(NotificationError):
    """Base exception for Telegram Bot API failures."""


class TelegramAPIError(TelegramError):
    """Telegram answered with an error envelope (``{"ok": false, ...}``).

    Attributes:
        description: Error description from the envelope, used for classification
        error_code: Telegram error code (usually the HTTP status)
    """

    def __init__(self, description: str, error_code: Optional[int] = None) -> None:
        super().__init__(f"Telegram API error {error_code}: {description}")
        self.description = description or ""
        self.error_code = error_code


class TelegramNetworkError(TelegramError):
    """Request never produced a Telegram envelope (timeout, DNS, connection reset)."""


class Encoding(str, Enum):
    """How a message body is encoded."""

    RICH = "rich"  # Telegram MarkdownV2
    PLAIN = "plain"  # No parse mode


class DeliveryFailure(str, Enum):
    """Classified reason a send attempt failed."""

    CHAT_NOT_FOUND = "chat_not_found"
    BLOCKED = "blocked"
    PARSE_ERROR = "parse_error"
    INVALID_TARGET = "invalid_target"
    NETWORK = "network"
    API_ERROR = "api_error"

    @property
    def is_permanent(self) -> bool:
        """The user must re-establish the channel before delivery can work."""
        return self in (DeliveryFailure.CHAT_NOT_FOUND, DeliveryFailure.BLOCKED)


@dataclass(frozen=True)
class NotificationMessage:
    """A rendered message. Transient, built per dispatch attempt."""

    body: str
    encoding: Encoding = Encoding.RICH
    target: Optional[str] = None


@dataclass
class DeliveryAttempt:
    """One sendMessage call."""

    target: str
    encoding: Encoding
    ok: bool
    failure: Optional[DeliveryFailure] = None
    description: str = ""


@dataclass
class DeliveryResult:
    """Outcome of delivering one message, including any fallback retry.

    Attributes:
        attempts: Every sendMessage call made, in order (at most two)
        failure: Category of the final failure, None on success
    """

    attempts: List[DeliveryAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].ok

    @property
    def failure(self) -> Optional[DeliveryFailure]:
        if not self.attempts or self.ok:
            return None
        return self.attempts[-1].failure

    @property
    def retried(self) -> bool:
        return len(self.attempts) > 1
