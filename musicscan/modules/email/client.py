from musicscan.config import settings
from musicscan.core.errors import ExternalServiceError
from typing import List, Optional, Union
import requests
import logging

logger = logging.getLogger(__name__)

RESEND_API = "https://api.resend.com/emails"


class ResendClient:
    """Thin wrapper over the Resend REST API."""

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None, timeout: int = 15):
        self.api_key = api_key or settings.resend_api_key
        self.sender = sender or settings.email_from
        self.timeout = timeout

    def send(self, to: Union[str, List[str]], subject: str, html: str) -> Optional[str]:
        """Send one email and return the Resend message id."""
        if not self.api_key:
            raise ExternalServiceError("resend", "RESEND_API_KEY is not configured")
        recipients = [to] if isinstance(to, str) else list(to)
        try:
            response = requests.post(
                RESEND_API,
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                json={"from": self.sender, "to": recipients, "subject": subject, "html": html},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError("resend", str(e))

        if response.status_code not in (200, 201):
            raise ExternalServiceError("resend", response.text, response.status_code)
        message_id = response.json().get("id")
        logger.info(f"Email '{subject}' sent to {', '.join(recipients)} ({message_id})")
        return message_id
