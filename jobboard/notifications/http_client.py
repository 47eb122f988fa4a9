"""HTTP email API client (Resend-style JSON endpoint)."""

from typing import Optional

import requests

from jobboard import __version__
from jobboard.logging import get_logger

from .models import EmailDeliveryError, OutboundEmail

logger = get_logger(__name__, component="notification")


class HTTPEmailClient:
    """Posts rendered messages to an email API.

    The request body is ``{"from", "to": [..], "subject", "html", "text"}``
    with a bearer token, which is what Resend and compatible services accept.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        user_agent: str = f"JobBoardNotifier/{__version__}",
    ):
        self.api_url = api_url
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "User-Agent": user_agent,
            }
        )

    def send(self, email: OutboundEmail, timeout: float = 30.0) -> Optional[str]:
        """Send one message.

        Returns:
            The provider's message id when the response carries one

        Raises:
            EmailDeliveryError: On timeout, connection failure or HTTP error status
        """
        payload = {
            "from": email.sender,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html_body,
            "text": email.text_body,
        }

        try:
            response = self._session.post(self.api_url, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Email API request timed out after {timeout} seconds",
                extra={"event": "notification.http.timeout", "timeout": timeout},
            )
            raise EmailDeliveryError(f"Email API request timed out after {timeout} seconds") from e
        except requests.exceptions.RequestException as e:
            raise EmailDeliveryError(f"Email API request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"Email API returned HTTP {response.status_code}",
                extra={
                    "event": "notification.http.error",
                    "status_code": response.status_code,
                },
            )
            raise EmailDeliveryError(
                f"Email API returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("id") if isinstance(body, dict) else None
