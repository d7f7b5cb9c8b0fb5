import logging

import httpx

from ..core.metrics import NOTIFICATIONS
from ..data.base import MessageRelay
from ..schemas import NotificationResponse

logger = logging.getLogger(__name__)

PRIORITY_EMOJI = {
    "URGENT": "🚨",
    "HIGH": "⚠️",
    "MEDIUM": "📋",
    "LOW": "ℹ️",
}

def format_reminder(message: str, priority: str = "MEDIUM") -> str:
    emoji = PRIORITY_EMOJI.get(priority, PRIORITY_EMOJI["MEDIUM"])
    return f"{emoji} PropControl Reminder\n\n{message}"

class RelayResult:
    """HTTP status + JSON body for the relay endpoint."""
    __slots__ = ("status_code", "body")

    def __init__(self, status_code: int, body: dict):
        self.status_code = status_code
        self.body = body

class NotificationService:
    """
    Forwards reminders to the owner's Telegram chat.
    ``relay`` is None when no bot token is configured.
    """
    def __init__(self, relay: MessageRelay | None, chat_id: str | None):
        self.relay = relay
        self.chat_id = chat_id

    async def send(self, message: str | None, priority: str = "MEDIUM",
                   follow_up_id: str | None = None) -> RelayResult:
        if self.relay is None or not self.chat_id:
            logger.error("Telegram relay not configured (token=%s chat_id=%s)",
                         self.relay is not None, bool(self.chat_id))
            NOTIFICATIONS.labels(priority=priority, outcome="unconfigured").inc()
            return RelayResult(500, {
                "error": "Telegram not configured",
                "hasToken": self.relay is not None,
                "hasChatId": bool(self.chat_id),
            })

        if not message or not message.strip():
            NOTIFICATIONS.labels(priority=priority, outcome="invalid").inc()
            return RelayResult(400, {"error": "Message is required"})

        try:
            result = await self.relay.send_message(self.chat_id, format_reminder(message, priority))
        except httpx.HTTPError as exc:
            logger.exception("Telegram send failed")
            NOTIFICATIONS.labels(priority=priority, outcome="error").inc()
            return RelayResult(500, {"error": str(exc) or exc.__class__.__name__})

        if not result.ok:
            logger.error("Telegram API rejected message: %s", result.payload)
            NOTIFICATIONS.labels(priority=priority, outcome="rejected").inc()
            return RelayResult(500, {"error": "Failed to send message", "details": result.payload})

        NOTIFICATIONS.labels(priority=priority, outcome="sent").inc()
        body = NotificationResponse(success=True, message_id=result.message_id, follow_up_id=follow_up_id)
        return RelayResult(200, body.model_dump(by_alias=True))
