"""Image loading and base64 encoding for vision requests."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from . import ImageEncodingError

_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF8", "image/gif"),
]


@dataclass(frozen=True)
class EncodedImage:
    media_type: str
    data: bytes

    @property
    def base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()


def _sniff_media_type(data: bytes) -> str | None:
    for signature, media_type in _SIGNATURES:
        if data.startswith(signature):
            return media_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def encode_image(image: bytes | str | Path) -> EncodedImage:
    """Load an image from bytes or a file path.

    Raises:
        ImageEncodingError: If the file cannot be read or holds no data.
    """
    if isinstance(image, (str, Path)):
        path = Path(image)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageEncodingError(
                "Failed to process the image. Please try again."
            ) from e
        fallback = mimetypes.guess_type(str(path))[0]
    else:
        data = bytes(image)
        fallback = None

    if not data:
        raise ImageEncodingError("Failed to process the image. Please try again.")

    media_type = _sniff_media_type(data) or fallback or "image/jpeg"
    return EncodedImage(media_type=media_type, data=data)
