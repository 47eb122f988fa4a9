"""Email notifications for deadline reminders and saved-search alerts.

- NotificationService: fans a NotificationBatch out and gathers outcomes
- NotificationBatch / BatchRecipient: what the alert passes hand over
- DeliveryOutcome / BatchResult: per-recipient success or failure
- TemplateRenderer: Jinja2-based email template rendering
- SMTPClient / HTTPEmailClient: outbound transports
- Payload builders: per-recipient template data
"""

from .http_client import HTTPEmailClient
from .models import (
    BatchRecipient,
    BatchResult,
    DeliveryOutcome,
    DeliveryStatus,
    EmailDeliveryError,
    NotificationBatch,
    NotificationError,
    NotificationTemplateError,
    OutboundEmail,
)
from .payloads import (
    build_deadline_reminder_recipient,
    build_job_alert_recipient,
    deadline_reminder_subject,
    job_alert_subject,
)
from .service import NotificationService, create_transport
from .smtp_client import SMTPClient
from .templates import DEADLINE_REMINDER_TEMPLATE, JOB_ALERT_TEMPLATE, TemplateRenderer

__all__ = [
    # Main service
    "NotificationService",
    "create_transport",
    # Models and results
    "NotificationBatch",
    "BatchRecipient",
    "BatchResult",
    "DeliveryOutcome",
    "DeliveryStatus",
    "OutboundEmail",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "EmailDeliveryError",
    # Components
    "TemplateRenderer",
    "SMTPClient",
    "HTTPEmailClient",
    "DEADLINE_REMINDER_TEMPLATE",
    "JOB_ALERT_TEMPLATE",
    # Payloads
    "build_deadline_reminder_recipient",
    "build_job_alert_recipient",
    "deadline_reminder_subject",
    "job_alert_subject",
]
