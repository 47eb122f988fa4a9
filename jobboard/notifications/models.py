"""Data models and exceptions for the notification service.

A NotificationBatch is what the alert passes hand over: one template, one
subject and a cohort of recipients each carrying their own template data.
The service answers with a BatchResult holding one DeliveryOutcome per
recipient, so partial failure is an inspectable value rather than an
exception.
"""

from dataclasses import dataclass, field
from email.message import EmailMessage
from enum import Enum
from typing import Any, Dict, List, Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to configuration or missing variables."""

    pass


class EmailDeliveryError(NotificationError):
    """Raised by a transport when a message could not be handed off."""

    pass


@dataclass
class BatchRecipient:
    """One member of a cohort.

    Attributes:
        address: Email address to deliver to
        user_id: Profile id, used for the in-app delivery log
        data: Per-recipient template variables
    """

    address: str
    user_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationBatch:
    """Recipients that share a template and subject line."""

    template_id: str
    subject: str
    recipients: List[BatchRecipient] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.recipients)


@dataclass
class OutboundEmail:
    """A fully rendered message ready for a transport."""

    sender: str
    to: str
    subject: str
    text_body: str
    html_body: str

    def to_email_message(self) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = self.subject
        message["From"] = self.sender
        message["To"] = self.to
        message.set_content(self.text_body)
        message.add_alternative(self.html_body, subtype="html")
        return message


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass
class DeliveryOutcome:
    """Result of delivering to a single recipient.

    Exactly one of two shapes: SENT (with the subject and a preview of the
    text body, used for the delivery log) or FAILED (with an error message).
    Build them with ``DeliveryOutcome.sent`` and ``DeliveryOutcome.failed``.
    """

    recipient: BatchRecipient
    status: DeliveryStatus
    attempts: int = 0
    subject: Optional[str] = None
    message_preview: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def sent(
        cls, recipient: BatchRecipient, attempts: int, subject: str, message_preview: str
    ) -> "DeliveryOutcome":
        return cls(
            recipient=recipient,
            status=DeliveryStatus.SENT,
            attempts=attempts,
            subject=subject,
            message_preview=message_preview,
        )

    @classmethod
    def failed(cls, recipient: BatchRecipient, error: str, attempts: int = 0) -> "DeliveryOutcome":
        return cls(recipient=recipient, status=DeliveryStatus.FAILED, attempts=attempts, error=error)

    def is_success(self) -> bool:
        return self.status == DeliveryStatus.SENT


@dataclass
class BatchResult:
    """Per-recipient outcomes of one batch, in recipient order."""

    template_id: str
    outcomes: List[DeliveryOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def successful(self) -> List[DeliveryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.is_success()]

    @property
    def failed(self) -> List[DeliveryOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.is_success()]

    @property
    def errors(self) -> List[str]:
        """Readable failure lines, e.g. ``student@uni.edu: timed out``."""
        return [f"{outcome.recipient.address}: {outcome.error}" for outcome in self.failed]
