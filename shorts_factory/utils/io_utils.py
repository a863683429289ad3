"""I/O utility functions for inline data and job identifiers."""

import base64
import binascii
import re
import uuid
from typing import Optional
from urllib.parse import unquote_to_bytes

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/aac": "aac",
    "audio/mp4": "m4a",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def new_job_id() -> str:
    """Return a fresh unique identifier for a request."""
    return uuid.uuid4().hex


def is_data_uri(value: str) -> bool:
    return value.startswith("data:")


def decode_data_uri(value: str) -> tuple[bytes, Optional[str]]:
    """
    Decode a ``data:`` URI.

    Args:
        value: URI such as ``data:audio/mp3;base64,SUQz...``

    Returns:
        Tuple of (decoded bytes, MIME type or None)

    Raises:
        ValueError: If the URI is malformed or its payload cannot be decoded
    """
    match = _DATA_URI_RE.match(value.strip())
    if not match:
        raise ValueError("Not a data: URI")

    payload = match.group("data")
    if not payload:
        raise ValueError("data: URI has an empty payload")

    if match.group("b64"):
        try:
            data = base64.b64decode(re.sub(r"\s+", "", payload), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    else:
        data = unquote_to_bytes(payload)

    if not data:
        raise ValueError("data: URI decoded to zero bytes")
    return data, match.group("mime")


def extension_for(mime_type: Optional[str], default: str) -> str:
    """Map a MIME type to a file extension, falling back to ``default``."""
    if not mime_type:
        return default
    return _EXTENSIONS.get(mime_type.lower(), default)
