"""
Image payload utility functions.
"""
import base64
import binascii
import re

from facetrack.core.exceptions import ValidationError

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


def decode_image_data(image_data: str) -> bytes:
    """Decode a base64 image, with or without a ``data:image/...;base64,`` prefix.

    Args:
        image_data: Base64 string as sent by the capture page

    Returns:
        bytes: Raw image bytes

    Raises:
        ValidationError: If the payload is empty or not valid base64
    """
    if not image_data:
        raise ValidationError("Image data is required")

    payload = _DATA_URL_PREFIX.sub("", image_data.strip(), count=1)
    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image data is not valid base64") from e

    if not image_bytes:
        raise ValidationError("Image data is empty")
    return image_bytes
