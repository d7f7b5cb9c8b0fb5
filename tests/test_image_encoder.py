"""Tests for photo encoding."""

import base64
import io

import pytest

from conftest import JPEG, PNG
from propcontrol.core.errors import EncodingError
from propcontrol.data.base import PhotoInput
from propcontrol.services import image_encoder


class BrokenStream:
    def read(self):
        raise OSError("device not ready")


class TestEncode:
    def test_bytes_are_base64_encoded_with_declared_type(self) -> None:
        part = image_encoder.encode(PhotoInput(content=JPEG, mime_type="image/jpeg"))
        assert part.mime_type == "image/jpeg"
        assert base64.b64decode(part.data) == JPEG

    def test_reads_binary_streams(self) -> None:
        part = image_encoder.encode(PhotoInput(content=io.BytesIO(PNG), mime_type="image/png"))
        assert base64.b64decode(part.data) == PNG

    def test_generic_type_is_sniffed(self) -> None:
        part = image_encoder.encode(PhotoInput(content=PNG, mime_type="application/octet-stream"))
        assert part.mime_type == "image/png"

    def test_unidentifiable_generic_upload_fails(self) -> None:
        with pytest.raises(EncodingError):
            image_encoder.encode(PhotoInput(content=b"not an image at all", mime_type=""))

    def test_empty_photo_fails(self) -> None:
        with pytest.raises(EncodingError, match="empty"):
            image_encoder.encode(PhotoInput(content=b"", mime_type="image/jpeg"))

    def test_unreadable_stream_fails(self) -> None:
        with pytest.raises(EncodingError, match="could not be read"):
            image_encoder.encode(PhotoInput(content=BrokenStream(), mime_type="image/jpeg"))

    def test_closed_stream_fails(self) -> None:
        stream = io.BytesIO(JPEG)
        stream.close()
        with pytest.raises(EncodingError):
            image_encoder.encode(PhotoInput(content=stream, mime_type="image/jpeg"))


class TestEncodeAll:
    def test_preserves_submission_order(self) -> None:
        photos = [PhotoInput(content=bytes([i]) * 8, mime_type="image/jpeg") for i in range(5)]
        parts = image_encoder.encode_all(photos)
        assert [base64.b64decode(p.data)[0] for p in parts] == [0, 1, 2, 3, 4]

    def test_failure_reports_photo_index(self) -> None:
        photos = [
            PhotoInput(content=JPEG, mime_type="image/jpeg"),
            PhotoInput(content=BrokenStream(), mime_type="image/jpeg"),
        ]
        with pytest.raises(EncodingError) as exc_info:
            image_encoder.encode_all(photos)
        assert exc_info.value.index == 1


@pytest.mark.parametrize(
    "head, expected",
    [
        (b"\xff\xd8\xff\xdb" + b"\x00" * 12, "image/jpeg"),
        (b"GIF89a" + b"\x00" * 10, "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"\x00\x00\x00\x18ftypheic\x00\x00\x00\x00", "image/heic"),
        (b"%PDF-1.7" + b"\x00" * 8, None),
    ],
)
def test_sniff_image_type(head, expected) -> None:
    assert image_encoder.sniff_image_type(head) == expected
