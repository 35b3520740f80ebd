import asyncio
import logging
from datetime import datetime

from twilio.rest import Client

from ..config import get_settings

logger = logging.getLogger(__name__)

class NotificationService:
    def __init__(self, settings=None):
        settings = settings or get_settings()
        self.from_number = settings.TWILIO_PHONE_NUMBER
        self.collector_number = settings.COLLECTOR_PHONE_NUMBER
        self.client = None
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self.client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

    @property
    def enabled(self) -> bool:
        return bool(self.client and self.from_number and self.collector_number)

    def format_report_alert(self, report_data: dict) -> str:
        location = report_data.get("location") or "Unknown location"
        waste_type = report_data.get("waste_type") or "Unknown type"
        amount = report_data.get("amount") or "unknown amount"

        timestamp = report_data.get("created_at", datetime.utcnow())
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        formatted_time = timestamp.strftime("%H:%M %d/%m")

        # Kept under 160 chars so it fits a single SMS
        return (
            f"New waste report\n"
            f"📍 {location[:60]}\n"
            f"⏰ {formatted_time}\n"
            f"🗑️ {waste_type[:30]} ({amount[:20]})"
        )

    async def send_report_alert(self, report_data: dict) -> bool:
        """
        Send an SMS alert to the collector about a new waste report

        Args:
            report_data: The created report document

        Returns:
            bool: True if message was sent successfully, False otherwise
        """
        if not self.enabled:
            logger.debug("Twilio is not configured, skipping collector alert")
            return False

        try:
            message = self.format_report_alert(report_data)
            # The Twilio client is blocking
            await asyncio.to_thread(
                self.client.messages.create,
                body=message,
                from_=self.from_number,
                to=self.collector_number
            )
            logger.info(f"Sent collector alert for waste report at {report_data.get('location')}")
            return True

        except Exception as e:
            logger.error(f"Failed to send SMS alert: {str(e)}")
            return False

# Create a singleton instance
notification_service = NotificationService()
