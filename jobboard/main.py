"""Main entry point for the job board notification service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Tuple

from jobboard.alerts import (
    DEADLINE_REMINDERS,
    EXPIRED_POSTINGS,
    PASS_ORDER,
    PENDING_APPLICATIONS,
    SAVED_SEARCH_ALERTS,
    AlertScheduler,
    AlertSchedulerError,
    AlertRunSummary,
)
from jobboard.config.environment import EnvironmentConfig
from jobboard.config.exceptions import ConfigurationError
from jobboard.config.loader import load_config, validate_config_file
from jobboard.config.models import AppConfig
from jobboard.logging import get_logger
from jobboard.logging.config import configure_logging
from jobboard.notifications.service import NotificationService
from jobboard.persistence.database import close_database, init_database
from jobboard.scheduler import SchedulerService

logger = get_logger(__name__, component="cli")

RUN_CHOICES = {
    "deadline-reminders": (DEADLINE_REMINDERS,),
    "saved-search-alerts": (SAVED_SEARCH_ALERTS,),
    "close-expired": (EXPIRED_POSTINGS,),
    "pending-applications": (PENDING_APPLICATIONS,),
    "all": PASS_ORDER,
}


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def make_pass_runner(alert_scheduler: AlertScheduler, pass_name: str) -> Callable[[], None]:
    """Wrap one pass for the scheduler so an aborted pass is logged, not raised."""

    def run() -> None:
        try:
            alert_scheduler.run_pass(pass_name)
        except AlertSchedulerError as e:
            logger.error(
                f"{pass_name} aborted: {e}",
                extra={"event": "service.pass.failed", "pass_name": pass_name},
            )

    return run


def log_run_summary(summary: AlertRunSummary) -> None:
    for pass_name, result in summary.results.items():
        logger.info(
            f"{pass_name}: {len(result.errors)} errors"
            + (" (skipped)" if result.skipped else ""),
            extra={
                "event": "service.manual_run.pass_summary",
                "pass_name": pass_name,
                "duration_seconds": round(result.duration_seconds, 3),
                "error_count": len(result.errors),
                "skipped": result.skipped,
            },
        )
    for pass_name, error in summary.failures.items():
        logger.error(
            f"{pass_name} failed: {error}",
            extra={"event": "service.manual_run.pass_failed", "pass_name": pass_name},
        )


def main(argv=None) -> int:
    """
    Main entry point for the job board notification service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="University job board notifier - deadline reminders, saved-search alerts, "
        "expired posting closure and pending application reminders"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--run",
        choices=sorted(RUN_CHOICES),
        default=None,
        help="Run the given pass(es) once and exit instead of starting the scheduler",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    args = parser.parse_args(argv)

    if args.validate_config:
        return 0 if validate_config_file(args.config or Path("config.yaml")) else 1

    try:
        # Configuration first so the log format is known
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        log_format = app_config.logging.format
        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(level=env_config.log_level, format_type=log_format, environment=environment)

        logger.info(
            "Job board notifier starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "run": args.run,
            },
        )

        init_database(env_config.database_url, query_timeout=app_config.database.query_timeout)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "transport": app_config.email.transport,
                "reminder_days_before": app_config.alerts.reminder_days_before,
                "log_format": log_format,
            },
        )

        notification_service = NotificationService(app_config.email, env_config)
        alert_scheduler = AlertScheduler(app_config, notification_service)

        logger.info("Services initialized", extra={"event": "services.initialized"})

        if args.run:
            logger.info(
                f"Executing manual run: {args.run}",
                extra={"event": "service.manual_run.starting"},
            )
            try:
                summary = alert_scheduler.run_all(pass_names=RUN_CHOICES[args.run])
                log_run_summary(summary)
            finally:
                close_database()

            logger.info(
                "Job board notifier stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                    "had_errors": summary.had_errors,
                },
            )
            return 1 if summary.had_errors else 0

        # Daemon mode
        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(shutdown_event=shutdown_event)
        for pass_name in PASS_ORDER:
            scheduler_service.add_interval_job(
                pass_name,
                make_pass_runner(alert_scheduler, pass_name),
                app_config.schedule.interval_seconds(pass_name),
            )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            scheduler_service.shutdown(wait=False)
        finally:
            close_database()

        logger.info(
            "Job board notifier stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
