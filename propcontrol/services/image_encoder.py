"""Photo bytes -> base64 inline parts for the multimodal request."""

import base64
import logging
from typing import Sequence

from ..core.errors import EncodingError
from ..data.base import EncodedImagePart, PhotoInput

logger = logging.getLogger(__name__)

GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

def sniff_image_type(head: bytes) -> str | None:
    """Identify common photo formats from their leading bytes."""
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if head[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head[4:8] == b"ftyp" and head[8:12] in (b"heic", b"heix", b"mif1", b"msf1"):
        return "image/heic"
    return None

def read_bytes(photo: PhotoInput) -> bytes:
    content = photo.content
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    read = getattr(content, "read", None)
    if read is None:
        raise EncodingError(f"unsupported photo content type: {type(content).__name__}")
    try:
        data = read()
    except (OSError, ValueError) as exc:
        # ValueError: read on a closed file
        raise EncodingError(f"photo could not be read: {exc}") from exc
    if not isinstance(data, (bytes, bytearray)):
        raise EncodingError("photo stream did not return bytes")
    return bytes(data)

def encode(photo: PhotoInput) -> EncodedImagePart:
    data = read_bytes(photo)
    if not data:
        raise EncodingError("photo is empty")

    mime_type = (photo.mime_type or "").strip().lower()
    if mime_type in GENERIC_TYPES:
        mime_type = sniff_image_type(data[:16]) or ""
        if not mime_type:
            raise EncodingError("photo format could not be identified")

    return EncodedImagePart(
        data=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type,
    )

def encode_all(photos: Sequence[PhotoInput]) -> list[EncodedImagePart]:
    """
    Encode in submission order. The list position is the
    ``source_image_index`` the model refers back to.
    """
    parts = []
    for index, photo in enumerate(photos):
        try:
            parts.append(encode(photo))
        except EncodingError as exc:
            exc.index = index
            logger.warning("photo %d (%s) unreadable: %s", index, photo.filename or "unnamed", exc.message)
            raise
    return parts
