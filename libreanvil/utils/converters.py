"""
Converters module - Data conversion helpers for LibreAnvil.
"""

import base64
import io
import re
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from libreanvil.config import get_config
from libreanvil.data.schemas.models import ImageInput

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)


class ImageInputError(ValueError):
    """Raised when an uploaded file cannot be used as a map image."""


def parse_year(label: Optional[str]) -> int:
    """
    Best-effort integer parse of a year or era label.

    Only a leading integer is read ("1000 BE" -> 1000, "-44" -> -44).
    Labels without one ("Present") count as 0.
    """
    if not label:
        return 0
    match = _LEADING_INT.match(label)
    return int(match.group(1)) if match else 0


def bytes_to_data_url(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


def data_url_to_bytes(data_url: str) -> bytes:
    """
    Decode a data URL into raw bytes.

    Raises:
        ValueError: If the string is not a data URL
    """
    match = _DATA_URL.match(data_url)
    if not match:
        raise ValueError("Not a data URL")
    payload = match.group("payload")
    if match.group("b64"):
        return base64.b64decode(payload, validate=False)
    return payload.encode("utf-8")


def read_image_size(content: bytes) -> Tuple[int, int]:
    """
    Decode an image far enough to read its natural size.

    Returns:
        (width, height) in pixels

    Raises:
        ImageInputError: If Pillow cannot identify the image or it is too large
            to decode safely
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            img.verify()
            return img.size
    except Image.DecompressionBombError as e:
        raise ImageInputError(f"Image has too many pixels: {e}") from e
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageInputError(f"Could not decode image: {e}") from e


def image_input_from_bytes(
    content: bytes,
    mime_type: str,
    max_bytes: Optional[int] = None
) -> ImageInput:
    """
    Turn an uploaded file into the image input value used by the map engine.

    Args:
        content: Raw file content
        mime_type: Declared MIME type of the upload
        max_bytes: Size limit (defaults to config)

    Returns:
        ImageInput with a data URL and the natural pixel size

    Raises:
        ImageInputError: For non-image types, oversize or undecodable files
    """
    limit = max_bytes if max_bytes is not None else get_config().basemap.max_image_bytes

    if not mime_type or not mime_type.startswith("image/"):
        raise ImageInputError("Please select an image file (JPEG, PNG, etc.)")
    if len(content) > limit:
        raise ImageInputError(f"Image size should be less than {limit // (1024 * 1024)}MB")

    width, height = read_image_size(content)
    return ImageInput(
        data_url=bytes_to_data_url(content, mime_type),
        width=width,
        height=height,
    )
