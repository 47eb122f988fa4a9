"""Scheduling module for periodic execution of the alert passes."""

from .service import ScheduledJob, SchedulerService

__all__ = [
    "SchedulerService",
    "ScheduledJob",
]
