"""JSON encoding and decoding for request and response bodies."""

import json
from typing import Any, Optional, Union

from .exceptions import DecodeError
from .logging_config import get_logger

logger = get_logger(__name__)


def encode_json(value: Any) -> bytes:
    """
    Encode a value as compact UTF-8 JSON.

    Non-ASCII characters and forward slashes are written as-is rather than
    escaped.
    """
    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_json(data: Optional[Union[bytes, str]], strict: bool = False) -> Any:
    """
    Decode a JSON body.

    Args:
        data: Raw body
        strict: Raise DecodeError instead of returning None on failure

    Returns:
        The decoded value, or None when the body is empty or not JSON
    """
    if data is None or len(data) == 0:
        if strict:
            raise DecodeError("Empty body is not valid JSON", body=data or b"")
        return None

    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        if strict:
            raise DecodeError(f"Body is not valid JSON: {e}", body=data) from e
        logger.debug("JSON decode failed", error=str(e), body_length=len(data))
        return None
