"""SMS delivery for worker one-time codes using Twilio"""
import os
import logging
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from typing import Optional, Tuple
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self):
        self.account_sid = os.getenv("TWILIO_ACCOUNT_SID")
        self.auth_token = os.getenv("TWILIO_AUTH_TOKEN")
        self.sms_from = os.getenv("TWILIO_SMS_FROM")  # e.g., +1234567890

        if self.account_sid and self.auth_token:
            self.client = Client(self.account_sid, self.auth_token)
        else:
            self.client = None
            logger.warning("Twilio credentials not configured. SMS will be simulated.")

    def _is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return self.client is not None and bool(self.sms_from)

    def send_sms(self, to_phone: str, message: str) -> Tuple[bool, Optional[str]]:
        """
        Send SMS via Twilio

        Args:
            to_phone: Phone number as stored on the worker
            message: Message content

        Returns:
            (success: bool, message_sid or error: str)
        """
        if not self._is_configured():
            logger.info(f"[SIMULATED SMS] To: {to_phone}, Message: {message}")
            return True, "simulated_message_sid"

        try:
            message_obj = self.client.messages.create(
                from_=self.sms_from,
                body=message,
                to=to_phone
            )
            return True, message_obj.sid

        except TwilioRestException as e:
            error_msg = f"Twilio error: {str(e)}"
            logger.error(error_msg)
            return False, error_msg


def render_otp_message(otp: str, validity_minutes: int) -> str:
    """Render the one-time code SMS"""
    return (
        f"Your Health Bridge login code is {otp}. "
        f"It expires in {validity_minutes} minutes. Do not share it with anyone."
    )


# Singleton instance
notification_service = NotificationService()
