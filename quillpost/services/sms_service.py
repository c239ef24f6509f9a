"""
SMS Service using Twilio.

Sends OTP verification codes by SMS.
"""

import asyncio
import logging
from typing import Optional

from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ..auth.credentials import to_e164
from ..config import SmsConfig
from ..errors import InternalServerError

logger = logging.getLogger(__name__)


class SMSService:
    """Service for sending SMS verification codes via Twilio."""

    def __init__(self, config: SmsConfig, region: str = "IR", timeout: float = 10.0):
        self.config = config
        self.region = region
        self._client: Optional[Client] = None

        if config.account_sid and config.auth_token:
            self._client = Client(
                config.account_sid,
                config.auth_token,
                http_client=TwilioHttpClient(timeout=timeout),
            )
            logger.info("Twilio SMS service initialized")
        else:
            logger.warning("Twilio credentials not set, SMS dispatch disabled")

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        return self._client is not None and bool(self.config.from_number)

    def _send(self, to_phone: str, body: str) -> str:
        message = self._client.messages.create(
            body=body,
            from_=self.config.from_number,
            to=to_phone
        )
        return message.sid

    async def send_verification_code(self, phone: str, code: str) -> str:
        """
        Send an OTP code by SMS.

        Args:
            phone: Destination phone number (national or E.164)
            code: Verification code

        Returns:
            Twilio message SID

        Raises:
            InternalServerError: Twilio is not configured or rejected the message
        """
        if not self.is_configured():
            raise InternalServerError("SMS: Twilio not configured")

        to_formatted = to_e164(phone, self.region)
        body = f"Quillpost verification code: {code}"

        try:
            sid = await asyncio.to_thread(self._send, to_formatted, body)
        except Exception as e:
            logger.error(f"SMS send failed to {to_formatted}: {e}")
            raise InternalServerError(f"SMS: {e}") from e

        logger.info(f"Verification SMS sent to {to_formatted}: {sid}")
        return sid
