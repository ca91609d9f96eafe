"""Delivery of rendered messages to Telegram.

NotificationDispatcher sends one message per call and classifies failures
from Telegram's error description:

- chat not found / user not found: permanent, no retry
- bot was blocked: permanent, no retry
- can't parse entities: resend once as plain text
- chat_id is empty: resend once with an '@' prefix when the target is a bare username
- timeout / transport error: no retry
- anything else: api_error, no retry

At most two sendMessage calls are made per message.
"""

import re
from typing import Any, Dict, Optional

from job_matcher.config.models import MessagingConfig
from job_matcher.logging import get_logger

from .formatter import MessageFormatter
from .models import (
    DeliveryAttempt,
    DeliveryFailure,
    DeliveryResult,
    Encoding,
    NotificationMessage,
    TelegramAPIError,
    TelegramNetworkError,
)
from .telegram_client import TelegramClient

logger = get_logger(__name__, component="notification")

PARSE_MODE_RICH = "MarkdownV2"

_NUMERIC_CHAT_ID = re.compile(r"^-?\d+$")

_FAILURE_PATTERNS = (
    ("chat not found", DeliveryFailure.CHAT_NOT_FOUND),
    ("user not found", DeliveryFailure.CHAT_NOT_FOUND),
    ("bot was blocked", DeliveryFailure.BLOCKED),
    ("can't parse entities", DeliveryFailure.PARSE_ERROR),
    ("chat_id is empty", DeliveryFailure.INVALID_TARGET),
)


def classify_failure(description: str) -> DeliveryFailure:
    """Map a Telegram error description to a failure category."""
    lowered = (description or "").lower()
    for needle, failure in _FAILURE_PATTERNS:
        if needle in lowered:
            return failure
    return DeliveryFailure.API_ERROR


def is_bare_username(target: str) -> bool:
    """True for a username given without its '@' (not a numeric chat id)."""
    return bool(target) and not target.startswith("@") and not _NUMERIC_CHAT_ID.match(target)


class NotificationDispatcher:
    """Sends NotificationMessages through the Telegram Bot API."""

    def __init__(
        self,
        client: TelegramClient,
        formatter: Optional[MessageFormatter] = None,
        messaging_config: Optional[MessagingConfig] = None,
    ):
        """Initialize dispatcher.

        Args:
            client: Telegram API client
            formatter: Used for plain-text fallback and connection tests
            messaging_config: Messaging settings (link previews)
        """
        self.client = client
        self.config = messaging_config or MessagingConfig()
        self.formatter = formatter or MessageFormatter(self.config)

    def dispatch(self, target: str, message: NotificationMessage) -> bool:
        """Deliver a message; True only when Telegram acknowledged the send."""
        return self.deliver(target, message).ok

    def deliver(self, target: str, message: NotificationMessage) -> DeliveryResult:
        """Deliver a message and report every attempt made.

        Args:
            target: Numeric chat id or @username
            message: Rendered message

        Returns:
            DeliveryResult with one or two attempts
        """
        result = DeliveryResult()
        target = (target or "").strip()

        if not target:
            result.attempts.append(
                DeliveryAttempt(
                    target="",
                    encoding=message.encoding,
                    ok=False,
                    failure=DeliveryFailure.INVALID_TARGET,
                    description="no target configured",
                )
            )
            self._log_failure(result)
            return result

        first = self._attempt(target, message)
        result.attempts.append(first)

        if not first.ok:
            retry = self._fallback_for(first, target, message)
            if retry is not None:
                retry_target, retry_message = retry
                logger.info(
                    "Retrying Telegram send",
                    extra={
                        "event": "dispatch.retry",
                        "failure": first.failure.value,
                        "encoding": retry_message.encoding.value,
                        "target": retry_target,
                    },
                )
                result.attempts.append(self._attempt(retry_target, retry_message))

        if result.ok:
            logger.info(
                "Telegram message delivered",
                extra={
                    "event": "dispatch.succeeded",
                    "target": result.attempts[-1].target,
                    "encoding": result.attempts[-1].encoding.value,
                    "attempts": len(result.attempts),
                },
            )
        else:
            self._log_failure(result)
        return result

    def send_connection_test(self, target: str, bot_username: Optional[str] = None) -> bool:
        """Send the channel verification message to ``target``."""
        message = self.formatter.format_connection_test(bot_username=bot_username, target=target)
        return self.dispatch(target, message)

    def verify_bot(self) -> Optional[Dict[str, Any]]:
        """Check the bot token with getMe.

        Returns:
            The bot's User object, or None when verification failed
        """
        try:
            me = self.client.get_me()
        except (TelegramAPIError, TelegramNetworkError) as e:
            logger.warning(
                "Telegram bot verification failed",
                extra={"event": "telegram.verify.failed", "error": str(e)},
            )
            return None

        logger.info(
            "Telegram bot verified",
            extra={"event": "telegram.verify.succeeded", "bot_username": (me or {}).get("username")},
        )
        return me

    def _fallback_for(
        self, attempt: DeliveryAttempt, target: str, message: NotificationMessage
    ) -> Optional[tuple]:
        if attempt.failure == DeliveryFailure.PARSE_ERROR and message.encoding == Encoding.RICH:
            return target, self.formatter.to_plain(message)
        if attempt.failure == DeliveryFailure.INVALID_TARGET and is_bare_username(target):
            return f"@{target}", message
        return None

    def _attempt(self, target: str, message: NotificationMessage) -> DeliveryAttempt:
        parse_mode = PARSE_MODE_RICH if message.encoding == Encoding.RICH else None
        try:
            self.client.send_message(
                chat_id=target,
                text=message.body,
                parse_mode=parse_mode,
                disable_web_page_preview=self.config.disable_web_page_preview,
            )
        except TelegramAPIError as e:
            return DeliveryAttempt(
                target=target,
                encoding=message.encoding,
                ok=False,
                failure=classify_failure(e.description),
                description=e.description,
            )
        except TelegramNetworkError as e:
            return DeliveryAttempt(
                target=target,
                encoding=message.encoding,
                ok=False,
                failure=DeliveryFailure.NETWORK,
                description=str(e),
            )
        return DeliveryAttempt(target=target, encoding=message.encoding, ok=True)

    def _log_failure(self, result: DeliveryResult) -> None:
        last = result.attempts[-1]
        hint = None
        if last.failure is not None and last.failure.is_permanent:
            hint = "user must start a chat with the bot again"
        logger.warning(
            f"Telegram delivery failed: {last.failure.value if last.failure else 'unknown'}",
            extra={
                "event": "dispatch.failed",
                "failure": last.failure.value if last.failure else None,
                "description": last.description,
                "target": last.target,
                "attempts": len(result.attempts),
                "hint": hint,
            },
        )
