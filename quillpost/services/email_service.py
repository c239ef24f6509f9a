"""
Email Service - send OTP codes over SMTP.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from ..config import EmailConfig
from ..errors import InternalServerError

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending verification emails via SMTP with STARTTLS."""

    def __init__(self, config: EmailConfig, timeout: float = 10.0):
        self.config = config
        self.timeout = timeout

        if not self.is_configured():
            logger.warning("SMTP settings not set, email dispatch disabled")

    def is_configured(self) -> bool:
        return all([self.config.server, self.config.sender, self.config.password])

    def _build_message(self, to_email: str, code: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = "OTP verification code"
        msg["From"] = self.config.sender
        msg["To"] = to_email
        msg.set_content(f"Your verification code: {code}")
        msg.add_alternative(
            f"<p>Your verification code: <b style='color:blue;'>{code}</b></p>",
            subtype="html"
        )
        return msg

    def _send(self, msg: EmailMessage):
        with smtplib.SMTP(self.config.server, self.config.port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            smtp.starttls()
            smtp.login(self.config.sender, self.config.password)
            smtp.send_message(msg)

    async def send_verification_code(self, to_email: str, code: str):
        """
        Send an OTP code by email.

        Raises:
            InternalServerError: SMTP is not configured or the send failed
        """
        if not self.is_configured():
            raise InternalServerError("EMAIL: SMTP not configured")

        msg = self._build_message(to_email, code)

        try:
            await asyncio.to_thread(self._send, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise InternalServerError(f"EMAIL: {e}") from e

        logger.info(f"Verification email sent to {to_email}")
