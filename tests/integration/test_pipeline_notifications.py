"""Integration tests for the alert pipeline with Telegram delivery.

Tests end-to-end flow:
- Adzuna JSON → AdzunaAdapter → re-scoring → MessageFormatter → NotificationDispatcher
- Plain-text resend when Telegram rejects the markup
- Real SQLite database (in-memory)
- HTTP mocked at the requests.Session level for both providers
"""

from unittest.mock import Mock

import pytest

from job_matcher.adapters.adzuna import AdzunaAdapter
from job_matcher.config.models import AppConfig
from job_matcher.domain.models import AlertFrequency
from job_matcher.notifications.formatter import MessageFormatter
from job_matcher.notifications.service import NotificationDispatcher
from job_matcher.notifications.telegram_client import TelegramClient
from job_matcher.persistence.database import get_session
from job_matcher.persistence.repositories import AlertRepository
from job_matcher.pipeline import AlertOutcome, AlertPipeline, FailureCategory

SEND_URL = "https://api.telegram.org/bot123:abc/sendMessage"


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.text = ""
    response.json.return_value = payload
    return response


def adzuna_results(*titles):
    return {
        "results": [
            {
                "id": str(100 + i),
                "title": title,
                "description": "Python and Django services.",
                "company": {"display_name": "Acme & Co."},
                "location": {"display_name": "Leeds"},
                "redirect_url": f"https://www.adzuna.co.uk/jobs/land/ad/{100 + i}",
                "created": "2025-11-09T08:00:00Z",
            }
            for i, title in enumerate(titles)
        ]
    }


@pytest.fixture
def adzuna_session():
    session = Mock()
    session.headers = {}
    session.request.return_value = json_response(adzuna_results("Python Developer"))
    return session


@pytest.fixture
def telegram_session():
    session = Mock()
    session.post.return_value = json_response({"ok": True, "result": {"message_id": 1}})
    return session


@pytest.fixture
def integration_pipeline(memory_db, adzuna_session, telegram_session, fixed_now):
    formatter = MessageFormatter()
    dispatcher = NotificationDispatcher(
        TelegramClient(bot_token="123:abc", session=telegram_session), formatter
    )
    fetcher = AdzunaAdapter(app_id="id", app_key="key", session=adzuna_session)
    return AlertPipeline(AppConfig(), fetcher, dispatcher, clock=lambda: fixed_now)


def store(*alerts):
    with get_session() as session:
        repo = AlertRepository(session)
        for alert in alerts:
            repo.add(alert)


def load(alert_id):
    with get_session() as session:
        return AlertRepository(session).get_by_id(alert_id)


class TestPipelineDelivery:
    """Alert processing through real formatter, dispatcher and HTTP clients."""

    def test_rich_message_delivered(self, integration_pipeline, telegram_session, alert_factory, fixed_now):
        alert = alert_factory()
        store(alert)

        result = integration_pipeline.process_alert(alert)

        assert result.outcome == AlertOutcome.SENT
        telegram_session.post.assert_called_once()
        url = telegram_session.post.call_args.args[0]
        payload = telegram_session.post.call_args.kwargs["json"]
        assert url == SEND_URL
        assert payload["chat_id"] == "@alice"
        assert payload["parse_mode"] == "MarkdownV2"
        assert payload["disable_web_page_preview"] is True
        assert "*1\\. Python Developer*" in payload["text"]
        assert "🏢 Acme & Co\\." in payload["text"]
        assert load(alert.id).last_dispatched_at == fixed_now

    def test_parse_error_resends_plain_text(
        self, integration_pipeline, telegram_session, alert_factory, fixed_now
    ):
        alert = alert_factory()
        store(alert)
        telegram_session.post.side_effect = [
            json_response(
                {
                    "ok": False,
                    "error_code": 400,
                    "description": "Bad Request: can't parse entities: Character '.' is reserved",
                },
                status_code=400,
            ),
            json_response({"ok": True, "result": {"message_id": 2}}),
        ]

        result = integration_pipeline.process_alert(alert)

        assert result.outcome == AlertOutcome.SENT
        assert result.delivered is True
        assert telegram_session.post.call_count == 2

        rich, plain = (call.kwargs["json"] for call in telegram_session.post.call_args_list)
        assert rich["parse_mode"] == "MarkdownV2"
        assert "parse_mode" not in plain
        assert "1. Python Developer" in plain["text"]
        assert "🏢 Acme & Co." in plain["text"]
        assert "🔗 Apply Now: https://www.adzuna.co.uk/jobs/land/ad/100" in plain["text"]
        assert "\\" not in plain["text"]
        assert load(alert.id).last_dispatched_at == fixed_now

    def test_blocked_bot_is_not_retried(self, integration_pipeline, telegram_session, alert_factory):
        alert = alert_factory()
        store(alert)
        telegram_session.post.return_value = json_response(
            {"ok": False, "error_code": 403, "description": "Forbidden: bot was blocked by the user"},
            status_code=403,
        )

        result = integration_pipeline.process_alert(alert)

        assert result.outcome == AlertOutcome.FAILED
        assert result.failure == FailureCategory.DISPATCH
        telegram_session.post.assert_called_once()
        assert load(alert.id).last_dispatched_at is None

    def test_provider_outage_sends_nothing(
        self, integration_pipeline, adzuna_session, telegram_session, alert_factory
    ):
        alert = alert_factory()
        store(alert)
        adzuna_session.request.return_value = json_response({}, status_code=503)

        result = integration_pipeline.process_alert(alert)

        assert result.outcome == AlertOutcome.NO_MATCHES
        telegram_session.post.assert_not_called()
        assert load(alert.id).last_dispatched_at is None

    def test_batch_continues_after_failed_delivery(
        self, integration_pipeline, telegram_session, alert_factory
    ):
        store(
            alert_factory(id="a-1", telegram_target="111"),
            alert_factory(id="a-2", telegram_target="222"),
        )

        def send(url, json, timeout):
            if json["chat_id"] == "111":
                return json_response(
                    {"ok": False, "error_code": 400, "description": "Bad Request: chat not found"},
                    status_code=400,
                )
            return json_response({"ok": True, "result": {}})

        telegram_session.post.side_effect = send

        batch = integration_pipeline.run_batch(AlertFrequency.DAILY)

        outcomes = {result.alert_id: result.outcome for result in batch.results}
        assert outcomes == {"a-1": AlertOutcome.FAILED, "a-2": AlertOutcome.SENT}
        assert batch.had_errors is True
        assert load("a-1").last_dispatched_at is None
        assert load("a-2").last_dispatched_at is not None
