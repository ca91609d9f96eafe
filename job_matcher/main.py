"""Main entry point for the Job Matcher alert service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from job_matcher.adapters.adzuna import AdzunaAdapter
from job_matcher.config.environment import EnvironmentConfig
from job_matcher.config.exceptions import ConfigurationError
from job_matcher.config.loader import load_config
from job_matcher.config.models import AppConfig
from job_matcher.domain.models import AlertFrequency, MatchRequest
from job_matcher.logging import get_logger
from job_matcher.logging.config import configure_logging
from job_matcher.notifications.formatter import MessageFormatter
from job_matcher.notifications.service import NotificationDispatcher
from job_matcher.notifications.telegram_client import TelegramClient
from job_matcher.persistence.database import close_database, get_session, init_database
from job_matcher.persistence.repositories import RecommendationRepository
from job_matcher.pipeline import AlertPipeline, RecommendationService
from job_matcher.scheduler import AlertScheduler
from job_matcher.skillgap.aggregator import DEFAULT_LIMIT, SkillGapAggregator

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > environment > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_dispatcher(app_config: AppConfig, env_config: EnvironmentConfig) -> NotificationDispatcher:
    """Telegram client, formatter and dispatcher wired from configuration."""
    client = TelegramClient(
        bot_token=env_config.telegram_bot_token,
        api_base_url=app_config.messaging.api_base_url,
        timeout=app_config.advanced.http_request_timeout,
    )
    formatter = MessageFormatter(app_config.messaging)
    return NotificationDispatcher(client, formatter, app_config.messaging)


def build_skill_gap_report(user_id: str, limit: int = DEFAULT_LIMIT) -> dict:
    """Skill gap report for one user from their stored recommendations."""
    with get_session() as session:
        scored_jobs = RecommendationRepository(session).list_for_user(user_id)
    return SkillGapAggregator().aggregate(scored_jobs, limit=limit).to_dict()


def load_match_request(path: Path) -> MatchRequest:
    """
    Read an interactive match request from a JSON file.

    The file holds ``user_id``, a ``profile`` (skills, experience,
    education) and optional search ``criteria`` (job_title, location,
    is_remote).

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Match request file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse match request {path}", errors=[str(e)])

    try:
        return MatchRequest.model_validate(raw)
    except ValidationError as e:
        errors = [
            f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError(
            f"Invalid match request {path}",
            errors=errors,
            suggestions=['Expected {"user_id": ..., "profile": {...}, "criteria": {...}}'],
        )


def run_match(request: MatchRequest, fetcher: AdzunaAdapter) -> list:
    """Run the interactive matching flow and summarize the stored results."""
    ranked = RecommendationService(fetcher).recommend(request)
    return [
        {
            "job_id": item.posting.external_id,
            "title": item.posting.title,
            "company": item.posting.company,
            "score": item.final_score,
            "url": item.posting.url,
            "matched_skills": item.score.matched_skills,
            "missing_skills": item.score.missing_skills,
        }
        for item in ranked
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Matcher - scheduled job alerts delivered through Telegram"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--trigger-alert",
        metavar="ALERT_ID",
        help="Process one alert now and exit (exit code 1 if nothing was delivered)",
    )
    mode.add_argument(
        "--run-now",
        choices=[f.value for f in AlertFrequency],
        help="Run the daily or weekly batch once and exit",
    )
    mode.add_argument(
        "--skill-gap",
        metavar="USER_ID",
        help="Print the skill gap report of a user as JSON and exit",
    )
    mode.add_argument(
        "--match",
        metavar="REQUEST_JSON",
        type=Path,
        help="Score jobs for the candidate profile in a JSON file, store them as recommendations and exit",
    )
    mode.add_argument(
        "--test-connection",
        metavar="TARGET",
        help="Send the connection test message to a chat id or @username and exit",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Missing skills listed by --skill-gap (default: {DEFAULT_LIMIT})",
    )
    return parser


def run_daemon(pipeline: AlertPipeline, app_config: AppConfig) -> int:
    """Run the scheduler until SIGINT/SIGTERM."""
    shutdown_event = threading.Event()
    scheduler = AlertScheduler(pipeline, app_config.schedule, shutdown_event=shutdown_event)

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler.stop(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler.start()
    logger.info(
        f"Scheduler started ({app_config.trigger_summary()}). Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler.stop(wait=False)
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for Job Matcher.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    fetcher: Optional[AdzunaAdapter] = None
    dispatcher: Optional[NotificationDispatcher] = None

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Job Matcher starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)

        if args.skill_gap:
            print(json.dumps(build_skill_gap_report(args.skill_gap, args.limit), indent=2))
            return 0

        if args.match:
            request = load_match_request(args.match)
            fetcher = AdzunaAdapter.from_config(app_config, env_config)
            print(json.dumps(run_match(request, fetcher), indent=2))
            return 0

        dispatcher = build_dispatcher(app_config, env_config)

        bot = dispatcher.verify_bot()
        if bot is None:
            logger.warning(
                "Continuing without a verified bot; deliveries may fail",
                extra={"event": "service.bot_unverified"},
            )

        if args.test_connection:
            ok = dispatcher.send_connection_test(
                args.test_connection, bot_username=(bot or {}).get("username")
            )
            return 0 if ok else 1

        fetcher = AdzunaAdapter.from_config(app_config, env_config)
        pipeline = AlertPipeline(app_config, fetcher, dispatcher)

        if args.trigger_alert:
            return 0 if pipeline.trigger_alert(args.trigger_alert) else 1

        if args.run_now:
            result = pipeline.run_batch(AlertFrequency(args.run_now))
            logger.info(
                f"Batch completed: {len(result.results)} alerts",
                extra={
                    "event": "service.run_now.completed",
                    "frequency": result.frequency,
                    "had_errors": result.had_errors,
                },
            )
            return 1 if result.had_errors else 0

        return run_daemon(pipeline, app_config)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if fetcher is not None:
            fetcher.close()
        if dispatcher is not None:
            dispatcher.client.close()
        close_database()
        logger.info(
            "Job Matcher stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )


if __name__ == "__main__":
    sys.exit(main())
