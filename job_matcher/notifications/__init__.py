"""Telegram notifications: message formatting, API client and dispatcher."""

from .formatter import (
    MAX_MESSAGE_LENGTH,
    TRUNCATION_MARKER,
    MessageFormatter,
    escape_markdown,
    escape_url,
    format_posted_date,
    format_salary,
    to_plain_text,
)
from .models import (
    DeliveryAttempt,
    DeliveryFailure,
    DeliveryResult,
    Encoding,
    NotificationError,
    NotificationMessage,
    NotificationTemplateError,
    TelegramAPIError,
    TelegramError,
    TelegramNetworkError,
)
from .service import NotificationDispatcher, classify_failure, is_bare_username
from .telegram_client import TelegramClient

__all__ = [
    # Formatting
    "MessageFormatter",
    "MAX_MESSAGE_LENGTH",
    "TRUNCATION_MARKER",
    "escape_markdown",
    "escape_url",
    "format_posted_date",
    "format_salary",
    "to_plain_text",
    # Delivery
    "NotificationDispatcher",
    "TelegramClient",
    "classify_failure",
    "is_bare_username",
    # Models
    "NotificationMessage",
    "Encoding",
    "DeliveryAttempt",
    "DeliveryFailure",
    "DeliveryResult",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "TelegramError",
    "TelegramAPIError",
    "TelegramNetworkError",
]
