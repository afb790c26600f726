# storefront/shared/emails.py

# Transactional email through Resend. Sends are blocking HTTP calls, so they
# run in a worker thread and are normally scheduled as background tasks.

import asyncio
import logging
from html import escape
from typing import Any, Optional

import resend

from ..config.settings import settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, api_key: str = "", sender: str = ""):
        self.api_key = api_key
        self.sender = sender or settings.SENDER_EMAIL

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, html: str) -> Optional[Any]:
        """Sends one HTML email. Returns the provider response, or None when skipped or failed."""
        if not self.enabled:
            logger.warning("Resend API key not configured, skipping email to %s", to)
            return None

        resend.api_key = self.api_key
        params = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        try:
            result = await asyncio.to_thread(resend.Emails.send, params)
        except Exception:
            # runs after the response was sent, nobody else can observe the failure
            logger.exception("Failed to send email to %s", to)
            return None
        logger.info("Email '%s' sent to %s", subject, to)
        return result


def get_mailer() -> Mailer:
    return Mailer(api_key=settings.RESEND_API_KEY, sender=settings.SENDER_EMAIL)


# --- Templates ---

def render_reset_password_email(otp: str, reset_url: Optional[str], device: str, ip: str) -> str:
    link = ""
    if reset_url:
        link = (
            f'<p>Or open this link to reset your password directly:</p>'
            f'<p><a href="{escape(reset_url)}">{escape(reset_url)}</a></p>'
        )

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Password Reset</h2>
        <p>We received a request to reset the password of your {escape(settings.APP_NAME)} account.</p>
        <p>Your verification code is:</p>
        <p style="font-size: 24px; font-weight: bold; letter-spacing: 4px;">{escape(otp)}</p>
        {link}
        <p style="color: #666;">Requested from {escape(device or 'unknown device')} ({escape(ip or 'unknown ip')}).
        The request expires in {settings.RESET_TOKEN_TTL_SECONDS // 60} minutes.
        If you did not ask for it, you can ignore this email.</p>
    </div>
    """
