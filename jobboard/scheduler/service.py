"""Scheduler service for periodic alert passes."""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from jobboard.logging import get_logger

logger = get_logger(__name__, component="scheduler")


@dataclass
class ScheduledJob:
    """A callable triggered every ``interval_seconds``."""

    job_id: str
    func: Callable[[], object]
    interval_seconds: int
    name: Optional[str] = None


class SchedulerService:
    """
    Wraps APScheduler to trigger each alert pass at its configured interval.

    Uses BackgroundScheduler to run jobs in worker threads while the main
    thread handles signals and coordinates shutdown. Each job is limited to
    one running instance and missed runs are coalesced.
    """

    def __init__(self, shutdown_event: Optional[threading.Event] = None):
        """
        Args:
            shutdown_event: Optional event to set on shutdown for coordination
        """
        self.shutdown_event = shutdown_event
        self.jobs: Dict[str, ScheduledJob] = {}

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # Prevent overlapping runs of one pass
                "coalesce": True,  # If runs were missed, only execute once
            },
            timezone=timezone.utc,
        )

    def add_interval_job(
        self,
        job_id: str,
        func: Callable[[], object],
        interval_seconds: int,
        name: Optional[str] = None,
    ) -> None:
        """Register a job; it is scheduled when ``start`` is called."""
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.jobs[job_id] = ScheduledJob(job_id, func, interval_seconds, name or job_id)

    def start(self) -> None:
        """
        Schedule every registered job and start the scheduler.

        The first run of each job happens immediately; later runs follow
        that job's interval.
        """
        next_run = datetime.now(timezone.utc)

        for job in self.jobs.values():
            self.scheduler.add_job(
                func=job.func,
                trigger=IntervalTrigger(seconds=job.interval_seconds, timezone=timezone.utc),
                id=job.job_id,
                name=job.name,
                replace_existing=True,
                next_run_time=next_run,
                misfire_grace_time=job.interval_seconds,
            )

        self.scheduler.start()

        logger.info(
            f"Scheduler started with {len(self.jobs)} jobs",
            extra={
                "event": "scheduler.started",
                "jobs": {job.job_id: job.interval_seconds for job in self.jobs.values()},
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler gracefully.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self, job_id: str) -> object:
        """Run a registered job synchronously in the current thread.

        Raises:
            KeyError: If no job with ``job_id`` is registered
        """
        job = self.jobs[job_id]
        logger.info(
            f"Triggering immediate run of {job_id}",
            extra={"event": "scheduler.trigger_now", "job_id": job_id},
        )
        return job.func()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self, job_id: str) -> Optional[datetime]:
        job = self.scheduler.get_job(job_id)
        return job.next_run_time if job else None
