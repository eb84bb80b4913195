# participium_bot/infra/image_processor.py
"""
Photo validation and inline encoding.

Checks applied to every downloaded photo, in order:
- Non-empty and within the configured size limit
- Format from magic bytes (JPEG, PNG, WebP), not from Content-Type
- WebP chunk structure (CVE-2023-4863 mitigation)
- Pillow decode check (truncated / malformed files rejected)

Accepted bytes are passed through unchanged and encoded as a
``data:<mime>;base64,...`` URI for the report payload.
"""
from __future__ import annotations

import base64
import io
import struct
from enum import Enum

from PIL import Image, ImageFile

from participium_bot.core.engine.domain import InlinePhoto
from participium_bot.core.engine.errors import CorruptMediaError, UnsupportedMediaError
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)

# Reject truncated images instead of silently padding them.
ImageFile.LOAD_TRUNCATED_IMAGES = False
Image.MAX_IMAGE_PIXELS = 50_000_000


class AllowedFormat(str, Enum):
    JPEG = "image/jpeg"
    PNG = "image/png"
    WEBP = "image/webp"


MAGIC_BYTES = {
    b'\xff\xd8\xff': AllowedFormat.JPEG,
    b'\x89PNG\r\n\x1a\n': AllowedFormat.PNG,
}

WEBP_VALID_CHUNKS = {b'VP8 ', b'VP8L', b'VP8X', b'ALPH', b'ANIM', b'ANMF', b'ICCP', b'EXIF', b'XMP '}
WEBP_MAX_CHUNK_SIZE = 50 * 1024 * 1024


def detect_format(data: bytes) -> AllowedFormat | None:
    """Detect image format from magic bytes."""
    for magic, fmt in MAGIC_BYTES.items():
        if data.startswith(magic):
            return fmt

    # RIFF....WEBP
    if data[:4] == b'RIFF' and len(data) > 11 and data[8:12] == b'WEBP':
        return AllowedFormat.WEBP

    return None


def validate_webp_structure(data: bytes) -> None:
    """
    Walk the RIFF chunk list before handing WebP bytes to the decoder.

    Raises:
        CorruptMediaError: If the container is malformed
    """
    if len(data) < 12:
        raise CorruptMediaError("WebP file too small")

    declared_size = struct.unpack('<I', data[4:8])[0]
    actual_size = len(data) - 8
    if declared_size > actual_size + 1:
        logger.warning(
            "WebP declared size mismatch: declared=%d, actual=%d", declared_size, actual_size
        )
        raise CorruptMediaError("Invalid WebP: size mismatch")

    offset = 12
    chunk_count = 0
    max_chunks = 100

    while offset < len(data) - 8 and chunk_count < max_chunks:
        chunk_type = data[offset:offset + 4]
        chunk_size = struct.unpack('<I', data[offset + 4:offset + 8])[0]

        if chunk_type not in WEBP_VALID_CHUNKS and not all(32 <= b < 127 for b in chunk_type):
            raise CorruptMediaError("Invalid WebP: malformed chunk type")

        if chunk_size > WEBP_MAX_CHUNK_SIZE:
            raise CorruptMediaError("Invalid WebP: chunk size exceeds limit")

        chunk_end = offset + 8 + chunk_size
        if chunk_end > len(data) + 1:  # +1 for optional padding byte
            raise CorruptMediaError("Invalid WebP: chunk extends beyond file")

        offset = chunk_end + (chunk_size % 2)
        chunk_count += 1

    if chunk_count == 0:
        raise CorruptMediaError("Invalid WebP: no valid chunks found")


def _verify_decodes(data: bytes) -> None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except Image.DecompressionBombError as e:
        raise CorruptMediaError(f"Decompression bomb detected: {e}") from e
    except (OSError, SyntaxError, ValueError) as e:
        logger.warning("Image decode check failed: %s", e)
        raise CorruptMediaError("Failed to decode image: corrupted or truncated") from e


def validate_photo(data: bytes, max_size_bytes: int) -> AllowedFormat:
    """
    Run every check on raw photo bytes.

    Returns:
        The detected format.

    Raises:
        CorruptMediaError: Empty, oversized, or undecodable bytes
        UnsupportedMediaError: Not JPEG, PNG or WebP
    """
    if not data:
        raise CorruptMediaError("Photo is empty")

    if len(data) > max_size_bytes:
        raise CorruptMediaError(
            f"Photo size {len(data)} bytes exceeds limit of {max_size_bytes} bytes"
        )

    fmt = detect_format(data)
    if fmt is None:
        raise UnsupportedMediaError("Unable to detect image format from file content")

    if fmt == AllowedFormat.WEBP:
        validate_webp_structure(data)

    _verify_decodes(data)
    return fmt


def to_data_uri(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def to_inline_photo(data: bytes, max_size_bytes: int) -> InlinePhoto:
    """Validate bytes and wrap them for the report payload."""
    fmt = validate_photo(data, max_size_bytes)
    return InlinePhoto(
        mime_type=fmt.value,
        size_bytes=len(data),
        data_uri=to_data_uri(data, fmt.value),
    )
