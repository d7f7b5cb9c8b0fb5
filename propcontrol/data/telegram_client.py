import httpx

from .base import MessageRelay, TelegramResult
from ..core.config import settings

class TelegramClient(MessageRelay):
    """
    Bot API sendMessage client. Telegram answers with {"ok": bool, ...} for
    both success and most failures, so the envelope is returned as-is and
    the caller decides what a rejection means.
    """
    def __init__(self, token: str, base_url: str = "https://api.telegram.org",
                 transport: httpx.AsyncBaseTransport | None = None):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    async def send_message(self, chat_id: str, text: str, parse_mode: str = "HTML") -> TelegramResult:
        async with httpx.AsyncClient(timeout=10, transport=self.transport) as client:
            r = await client.post(
                f"{self.base_url}/bot{self.token}/sendMessage",
                json={"chat_id": chat_id, "text": text, "parse_mode": parse_mode},
            )
        try:
            body = r.json()
        except ValueError:
            body = {"ok": False, "error_code": r.status_code, "description": r.text[:500]}
        if not isinstance(body, dict):
            body = {"ok": False, "description": str(body)[:500]}
        if not body.get("ok"):
            return TelegramResult(ok=False, payload=body)
        message_id = (body.get("result") or {}).get("message_id")
        return TelegramResult(ok=True, message_id=message_id, payload=body)

def telegram_client(transport: httpx.AsyncBaseTransport | None = None) -> TelegramClient | None:
    """
    Factory: None when no bot token is configured.
    """
    if not settings.TELEGRAM_BOT_TOKEN:
        return None
    return TelegramClient(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_API_URL, transport=transport)
