from typing import Any, BinaryIO, Protocol, Optional, Union
from dataclasses import dataclass, field

# ----- Data shapes (thin & explicit) -----

@dataclass(frozen=True)
class PhotoInput:
    """
    One uploaded photo as received from the caller. ``content`` is either the
    raw bytes or a binary stream; it is read once, by the encoder.
    """
    content: Union[bytes, BinaryIO]
    mime_type: str = ""
    filename: Optional[str] = None

@dataclass(frozen=True)
class EncodedImagePart:
    data: str       # base64 text
    mime_type: str  # e.g. "image/jpeg"

@dataclass(frozen=True)
class TelegramResult:
    ok: bool
    message_id: Optional[int] = None
    payload: dict[str, Any] = field(default_factory=dict)

# ----- Protocols (interfaces) -----

class MessageRelay(Protocol):
    async def send_message(self, chat_id: str, text: str, parse_mode: str = "HTML") -> TelegramResult: ...
