"""Notification service for delivering batches of templated emails.

This module provides the NotificationService class that fans a
NotificationBatch out to its recipients on a bounded thread pool, renders
each message, delivers it with retry/backoff, and gathers one
DeliveryOutcome per recipient. A failure for one recipient, including a
timeout or an invalid address, never raises out of ``send_batch``.
"""

import contextvars
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional

from email_validator import EmailNotValidError, validate_email

from jobboard.config.environment import EnvironmentConfig
from jobboard.config.models import EmailConfig, EmailTransportType
from jobboard.logging import get_logger
from jobboard.logging.context import log_context
from jobboard.utils.highlighting import truncate_text

from .http_client import HTTPEmailClient
from .models import (
    BatchRecipient,
    BatchResult,
    DeliveryOutcome,
    EmailDeliveryError,
    NotificationBatch,
    NotificationTemplateError,
    OutboundEmail,
)
from .smtp_client import SMTPClient
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

MAX_RETRY_DELAY = 60.0
MESSAGE_PREVIEW_LENGTH = 500


def create_transport(email_config: EmailConfig, env_config: EnvironmentConfig):
    """Build the transport selected by ``email.transport``."""
    if email_config.transport == EmailTransportType.HTTP.value:
        return HTTPEmailClient(env_config.email_api_url, env_config.email_api_key)
    return SMTPClient(env_config, use_tls=email_config.use_tls)


class NotificationService:
    """Delivers notification batches through an email transport.

    For every recipient:
    1. Validate the address
    2. Render the batch template with the recipient's data
    3. Deliver via the transport with retry/backoff
    4. Report a DeliveryOutcome

    The service never touches the database; callers record successful
    deliveries from the returned BatchResult.
    """

    def __init__(
        self,
        email_config: EmailConfig,
        env_config: EnvironmentConfig,
        transport=None,
        template_renderer: Optional[TemplateRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize notification service.

        Args:
            email_config: Retry, timeout and fan-out settings
            env_config: Sender identity and transport credentials
            transport: Object with ``send(email, timeout)`` (built from config if None)
            template_renderer: Template renderer instance (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
            sleep: Backoff sleep function, replaceable in tests
        """
        self.email_config = email_config
        self.env_config = env_config
        self.transport = transport or create_transport(email_config, env_config)
        self.template_renderer = template_renderer or TemplateRenderer()
        self.logger = logger_instance or logger
        self._sleep = sleep

    def send_batch(self, batch: NotificationBatch) -> BatchResult:
        """Deliver a batch and gather per-recipient outcomes.

        Recipients are processed on at most ``max_parallel_sends`` threads.
        Anything still pending after ``batch_timeout`` seconds is reported as
        a timed-out failure for that recipient only, and its worker is told
        to stop before making another delivery attempt.

        Args:
            batch: Template, subject and recipients to deliver

        Returns:
            BatchResult with one DeliveryOutcome per recipient, in order
        """
        result = BatchResult(template_id=batch.template_id)
        if not batch.recipients:
            return result

        workers = min(self.email_config.max_parallel_sends, len(batch.recipients))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify")
        cancelled = threading.Event()
        try:
            # Each task runs in its own copy of the caller's log context
            futures = [
                executor.submit(
                    contextvars.copy_context().run, self._deliver, batch, recipient, cancelled
                )
                for recipient in batch.recipients
            ]
            _, pending = wait(futures, timeout=self.email_config.batch_timeout)
            if pending:
                cancelled.set()

            for recipient, future in zip(batch.recipients, futures):
                if not future.done():
                    future.cancel()
                    result.outcomes.append(
                        DeliveryOutcome.failed(
                            recipient,
                            f"timed out after {self.email_config.batch_timeout:.0f}s",
                        )
                    )
                    continue
                try:
                    result.outcomes.append(future.result())
                except Exception as e:
                    self.logger.error(
                        f"Unexpected error delivering to {recipient.address}: {e}",
                        exc_info=True,
                        extra={"event": "notification.send.error"},
                    )
                    result.outcomes.append(DeliveryOutcome.failed(recipient, str(e)))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        self.logger.info(
            f"Notification batch complete: {len(result.successful)} sent, "
            f"{len(result.failed)} failed (total: {result.total})",
            extra={
                "event": "notification.batch.completed",
                "template": batch.template_id,
                "sent": len(result.successful),
                "failed": len(result.failed),
            },
        )
        return result

    def _deliver(
        self,
        batch: NotificationBatch,
        recipient: BatchRecipient,
        cancelled: Optional[threading.Event] = None,
    ) -> DeliveryOutcome:
        with log_context(recipient=recipient.address):
            try:
                address = validate_email(recipient.address, check_deliverability=False).normalized
            except EmailNotValidError as e:
                self.logger.warning(
                    f"Skipping invalid recipient address {recipient.address!r}: {e}",
                    extra={"event": "notification.recipient.invalid"},
                )
                return DeliveryOutcome.failed(recipient, f"invalid address: {e}")

            try:
                rendered = self._render(batch, recipient.data)
            except NotificationTemplateError as e:
                return DeliveryOutcome.failed(recipient, str(e))

            subject = batch.subject or rendered["subject"]
            email = OutboundEmail(
                sender=self.env_config.from_header,
                to=address,
                subject=subject,
                text_body=rendered["text_body"],
                html_body=rendered["html_body"],
            )

            max_attempts = self.email_config.max_retries + 1
            last_error = None
            for attempt in range(1, max_attempts + 1):
                if attempt > 1:
                    delay = min(
                        self.email_config.retry_initial_delay
                        * (self.email_config.retry_backoff_multiplier ** (attempt - 2)),
                        MAX_RETRY_DELAY,
                    )
                    self.logger.warning(
                        f"Retrying delivery to {address} (attempt {attempt}/{max_attempts}) "
                        f"after {delay:.1f}s delay",
                        extra={"event": "notification.send.attempt", "attempt": attempt},
                    )
                    self._sleep(delay)

                # Set once the batch has given up on this recipient
                if cancelled is not None and cancelled.is_set():
                    self.logger.info(
                        f"Abandoning delivery to {address} after batch timeout",
                        extra={"event": "notification.send.cancelled", "attempt": attempt},
                    )
                    return DeliveryOutcome.failed(
                        recipient, "cancelled after batch timeout", attempt - 1
                    )

                try:
                    self.transport.send(email, timeout=self.email_config.send_timeout)
                    self.logger.debug(
                        f"Delivered '{batch.template_id}' to {address} (attempts: {attempt})",
                        extra={"event": "notification.send.success", "attempt": attempt},
                    )
                    return DeliveryOutcome.sent(
                        recipient,
                        attempts=attempt,
                        subject=subject,
                        message_preview=truncate_text(email.text_body, MESSAGE_PREVIEW_LENGTH),
                    )
                except EmailDeliveryError as e:
                    last_error = str(e)
                    self.logger.warning(
                        f"Delivery to {address} failed (attempt {attempt}/{max_attempts}): {e}",
                        extra={
                            "event": "notification.send.failure",
                            "attempt": attempt,
                            "error_type": type(e).__name__,
                            "retry_remaining": attempt < max_attempts,
                        },
                    )

            return DeliveryOutcome.failed(recipient, last_error or "delivery failed", max_attempts)

    def _render(self, batch: NotificationBatch, data: Dict) -> Dict[str, str]:
        return self.template_renderer.render(batch.template_id, data)
