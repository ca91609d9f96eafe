"""Thin wrapper around the Telegram Bot API."""

from typing import Any, Dict, Optional

import requests

from job_matcher.logging import get_logger

from .models import TelegramAPIError, TelegramNetworkError

logger = get_logger(__name__, component="telegram")

DEFAULT_API_BASE_URL = "https://api.telegram.org"


class TelegramClient:
    """Calls Bot API methods over a shared requests.Session.

    Every call returns the ``result`` field of a ``{"ok": true}`` envelope.
    Error envelopes raise TelegramAPIError carrying Telegram's description;
    anything that never produced an envelope raises TelegramNetworkError.
    """

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = DEFAULT_API_BASE_URL,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Telegram client.

        Args:
            bot_token: Token issued by BotFather
            api_base_url: Bot API root URL
            timeout: Request timeout in seconds
            session: Optional pre-built session (tests inject mocks here)
        """
        if not bot_token:
            raise ValueError("bot_token is required")
        self._bot_token = bot_token
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _method_url(self, method: str) -> str:
        return f"{self.api_base_url}/bot{self._bot_token}/{method}"

    def call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Invoke a Bot API method.

        Raises:
            TelegramAPIError: Telegram answered ``ok: false``
            TelegramNetworkError: Timeout, transport failure or non-JSON body
        """
        try:
            response = self._session.post(
                self._method_url(method), json=payload or {}, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise TelegramNetworkError(
                f"Telegram {method} timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.RequestException as e:
            raise TelegramNetworkError(f"Telegram {method} failed: {type(e).__name__}") from e

        try:
            envelope = response.json()
        except ValueError as e:
            raise TelegramNetworkError(
                f"Telegram {method} returned HTTP {response.status_code} without a JSON body"
            ) from e

        if not isinstance(envelope, dict):
            raise TelegramNetworkError(f"Telegram {method} returned an unexpected body")

        if envelope.get("ok") is True:
            return envelope.get("result")

        raise TelegramAPIError(
            str(envelope.get("description") or f"HTTP {response.status_code}"),
            error_code=envelope.get("error_code", response.status_code),
        )

    def send_message(
        self,
        chat_id: str,
        text: str,
        parse_mode: Optional[str] = None,
        disable_web_page_preview: bool = True,
    ) -> Dict[str, Any]:
        """Send a text message.

        Args:
            chat_id: Numeric chat id or @channelusername
            text: Message body
            parse_mode: "MarkdownV2" for rich messages, None for plain text
            disable_web_page_preview: Suppress link previews

        Returns:
            The sent Message object
        """
        payload: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": disable_web_page_preview,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode

        logger.debug(
            "Sending Telegram message",
            extra={
                "event": "telegram.send.request",
                "chat_id": chat_id,
                "parse_mode": parse_mode,
                "length": len(text),
            },
        )
        return self.call("sendMessage", payload)

    def get_me(self) -> Dict[str, Any]:
        """Return the bot's own User object (used to verify the token)."""
        return self.call("getMe")

    def close(self) -> None:
        self._session.close()
