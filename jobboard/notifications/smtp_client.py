"""SMTP client wrapper for email delivery.

This module provides a thin wrapper around Python's smtplib with support
for TLS/SSL, authentication, and proper connection lifecycle management.
"""

import logging
import smtplib
import ssl
from typing import Callable, Optional

from jobboard.config.environment import EnvironmentConfig

from .models import EmailDeliveryError, OutboundEmail

logger = logging.getLogger(__name__)


class SMTPClient:
    """Wrapper around smtplib for sending email messages.

    Opens one connection per message so it can be used from several worker
    threads at once. Designed to be easily mockable for testing.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        use_tls: bool = True,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP client.

        Args:
            env_config: Environment configuration with SMTP settings
            use_tls: Whether to use TLS (STARTTLS or implicit SSL)
            smtp_factory: Factory function for creating SMTP instances (for mocking)
            smtp_ssl_factory: Factory function for creating SMTP_SSL instances (for mocking)
        """
        self.env_config = env_config
        self.use_tls = use_tls
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, email: OutboundEmail, timeout: float = 30.0) -> None:
        """Send an email via SMTP.

        Args:
            email: Rendered message
            timeout: Socket timeout in seconds for every SMTP operation

        Raises:
            EmailDeliveryError: If message delivery fails
        """
        host = self.env_config.smtp_host
        port = self.env_config.smtp_port
        smtp = None
        try:
            if port == 465:
                logger.debug(f"Connecting to {host}:{port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    host, port, timeout=timeout, context=ssl.create_default_context()
                )
            else:
                logger.debug(f"Connecting to {host}:{port}")
                smtp = self.smtp_factory(host, port, timeout=timeout)

                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())

            if self.env_config.smtp_user and self.env_config.smtp_pass:
                smtp.login(self.env_config.smtp_user, self.env_config.smtp_pass)

            smtp.send_message(email.to_email_message())
            logger.debug(f"Message sent successfully to {email.to}")

        except smtplib.SMTPRecipientsRefused as e:
            raise EmailDeliveryError(f"Recipient refused by SMTP server: {email.to}") from e
        except smtplib.SMTPException as e:
            raise EmailDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            # Includes socket.timeout
            raise EmailDeliveryError(f"Network error during SMTP connection: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")
