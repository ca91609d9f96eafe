"""Unit tests for the main entry point."""

import json
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest

from job_matcher.config.environment import EnvironmentConfig
from job_matcher.config.exceptions import ConfigurationError
from job_matcher.config.models import AppConfig, LoggingConfig
from job_matcher.domain.models import AlertFrequency, ScoredJob
from job_matcher.main import build_parser, build_skill_gap_report, load_runtime_config, main
from job_matcher.persistence import RecommendationRepository, get_session
from job_matcher.pipeline import AlertOutcome, AlertRunResult, BatchRunResult


def make_env(**overrides):
    fields = {
        "adzuna_app_id": "id",
        "adzuna_app_key": "key",
        "telegram_bot_token": "1:abc",
    }
    fields.update(overrides)
    return EnvironmentConfig(**fields)


@pytest.fixture
def runtime():
    """Patch every collaborator main() wires together."""
    with patch("job_matcher.main.load_config") as load_config, patch(
        "job_matcher.main.configure_logging"
    ) as configure_logging, patch("job_matcher.main.init_database") as init_database, patch(
        "job_matcher.main.close_database"
    ) as close_database, patch(
        "job_matcher.main.build_dispatcher"
    ) as build_dispatcher, patch(
        "job_matcher.main.AdzunaAdapter"
    ) as adapter_cls, patch(
        "job_matcher.main.AlertPipeline"
    ) as pipeline_cls, patch(
        "job_matcher.main.run_daemon"
    ) as run_daemon:
        load_config.return_value = (AppConfig(), make_env())
        dispatcher = build_dispatcher.return_value
        dispatcher.verify_bot.return_value = {"username": "job_bot"}
        run_daemon.return_value = 0

        yield Mock(
            load_config=load_config,
            configure_logging=configure_logging,
            init_database=init_database,
            close_database=close_database,
            dispatcher=dispatcher,
            fetcher=adapter_cls.from_config.return_value,
            pipeline=pipeline_cls.return_value,
            run_daemon=run_daemon,
        )


def batch(*outcomes, error_message=None):
    now = datetime(2025, 11, 10, tzinfo=timezone.utc)
    return BatchRunResult(
        frequency="daily",
        run_started_at=now,
        run_finished_at=now,
        results=[AlertRunResult(alert_id=str(i), outcome=o) for i, o in enumerate(outcomes)],
        error_message=error_message,
    )


class TestLoadRuntimeConfig:
    """Test suite for log level resolution."""

    @patch("job_matcher.main.load_config")
    def test_cli_override_wins(self, mock_load):
        mock_load.return_value = (AppConfig(), make_env(log_level="WARNING"))

        _, env_config = load_runtime_config(None, "DEBUG")

        assert env_config.log_level == "DEBUG"

    @patch("job_matcher.main.load_config")
    def test_environment_beats_config_file(self, mock_load):
        mock_load.return_value = (AppConfig(logging=LoggingConfig(level="ERROR")), make_env(log_level="WARNING"))

        _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "WARNING"

    @patch("job_matcher.main.load_config")
    def test_config_file_level_used_last(self, mock_load):
        mock_load.return_value = (AppConfig(logging=LoggingConfig(level="ERROR")), make_env())

        _, env_config = load_runtime_config(None, None)

        assert env_config.log_level == "ERROR"


class TestParser:
    """Tests for CLI argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.trigger_alert is None
        assert args.run_now is None
        assert args.match is None
        assert args.limit == 50

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--run-now", "daily", "--trigger-alert", "a-1"])

    def test_invalid_frequency(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--run-now", "hourly"])


class TestMain:
    """Tests for main() modes and exit codes."""

    def test_daemon_mode(self, runtime):
        assert main([]) == 0

        runtime.init_database.assert_called_once_with("sqlite:///./data/job_matcher.db")
        runtime.configure_logging.assert_called_once_with(
            level="INFO", format_type="key-value", environment="production"
        )
        runtime.run_daemon.assert_called_once()
        runtime.fetcher.close.assert_called_once()
        runtime.dispatcher.client.close.assert_called_once()
        runtime.close_database.assert_called_once()

    def test_trigger_alert_delivered(self, runtime):
        runtime.pipeline.trigger_alert.return_value = True

        assert main(["--trigger-alert", "alert-1"]) == 0
        runtime.pipeline.trigger_alert.assert_called_once_with("alert-1")
        runtime.run_daemon.assert_not_called()

    def test_trigger_alert_not_delivered(self, runtime):
        runtime.pipeline.trigger_alert.return_value = False

        assert main(["--trigger-alert", "alert-1"]) == 1

    def test_run_now_success(self, runtime):
        runtime.pipeline.run_batch.return_value = batch(AlertOutcome.SENT, AlertOutcome.NO_MATCHES)

        assert main(["--run-now", "weekly"]) == 0
        runtime.pipeline.run_batch.assert_called_once_with(AlertFrequency.WEEKLY)

    def test_run_now_with_failures(self, runtime):
        runtime.pipeline.run_batch.return_value = batch(AlertOutcome.SENT, AlertOutcome.FAILED)

        assert main(["--run-now", "daily"]) == 1

    def test_test_connection(self, runtime):
        runtime.dispatcher.send_connection_test.return_value = True

        assert main(["--test-connection", "@alice"]) == 0
        runtime.dispatcher.send_connection_test.assert_called_once_with("@alice", bot_username="job_bot")

    def test_unverified_bot_still_runs(self, runtime):
        runtime.dispatcher.verify_bot.return_value = None
        runtime.dispatcher.send_connection_test.return_value = False

        assert main(["--test-connection", "123"]) == 1
        runtime.dispatcher.send_connection_test.assert_called_once_with("123", bot_username=None)

    def test_skill_gap_prints_json(self, runtime, capsys):
        report = {"total_jobs": 0, "top_missing_skills": []}
        with patch("job_matcher.main.build_skill_gap_report", return_value=report) as build:
            assert main(["--skill-gap", "user-1", "--limit", "3"]) == 0

        build.assert_called_once_with("user-1", 3)
        assert json.loads(capsys.readouterr().out) == report
        runtime.dispatcher.verify_bot.assert_not_called()

    def test_match_prints_results(self, runtime, tmp_path, capsys):
        request_file = tmp_path / "request.json"
        request_file.write_text(json.dumps({"user_id": "user-1", "profile": {"skills": ["Go"]}}), encoding="utf-8")

        with patch("job_matcher.main.run_match", return_value=[{"job_id": "1"}]) as run:
            assert main(["--match", str(request_file)]) == 0

        request, fetcher = run.call_args.args
        assert request.user_id == "user-1"
        assert request.profile.skills == ["Go"]
        assert fetcher is runtime.fetcher
        assert json.loads(capsys.readouterr().out) == [{"job_id": "1"}]
        runtime.fetcher.close.assert_called_once()
        runtime.dispatcher.verify_bot.assert_not_called()

    def test_match_request_file_missing(self, runtime, tmp_path, capsys):
        assert main(["--match", str(tmp_path / "missing.json")]) == 1
        assert "Match request file not found" in capsys.readouterr().err

    def test_match_request_not_json(self, runtime, tmp_path, capsys):
        request_file = tmp_path / "request.json"
        request_file.write_text("{not json", encoding="utf-8")

        assert main(["--match", str(request_file)]) == 1
        assert "Failed to parse match request" in capsys.readouterr().err

    def test_configuration_error(self, runtime, capsys):
        runtime.load_config.side_effect = ConfigurationError("Broken", errors=["missing key"])

        assert main([]) == 1
        assert "Configuration Error: Broken" in capsys.readouterr().err
        runtime.init_database.assert_not_called()
        runtime.close_database.assert_called_once()

    def test_unexpected_error(self, runtime, capsys):
        runtime.init_database.side_effect = RuntimeError("disk full")

        assert main([]) == 1
        assert "Fatal error: disk full" in capsys.readouterr().err


class TestSkillGapReport:
    """build_skill_gap_report against a real database."""

    def test_report_from_stored_recommendations(self, memory_db):
        with get_session() as session:
            RecommendationRepository(session).replace_for_user(
                "user-1",
                [
                    ScoredJob(user_id="user-1", job_id="1", score=85, matched_skills=["Python"], missing_skills=["Go"]),
                    ScoredJob(user_id="user-1", job_id="2", score=30, missing_skills=["Go", "Rust"]),
                ],
            )

        report = build_skill_gap_report("user-1", limit=1)

        assert report["total_jobs"] == 2
        assert [item["skill"] for item in report["top_missing_skills"]] == ["Go"]
        assert report["overall_missing_skills"] == ["Go", "Rust"]

    def test_unknown_user(self, memory_db):
        report = build_skill_gap_report("ghost")

        assert report["total_jobs"] == 0
        assert report["top_missing_skills"] == []
