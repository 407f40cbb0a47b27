# x402_aar/protocol/codec.py
"""
Header codec for x402 AAR headers.

Header values are JSON documents carried as URL-safe base64 with the
trailing padding stripped:

    encode: JSON -> base64 -> '+' to '-', '/' to '_', strip '='
    decode: '-' to '+', '_' to '/', re-pad to a multiple of 4 -> base64 -> JSON

Decoding never raises; malformed input yields None.
"""
import json
import logging
from typing import Any, Optional

from pydantic import BaseModel
from x402.encoding import safe_base64_decode, safe_base64_encode

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    """Serialize pydantic models by their wire aliases."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def to_json(value: Any) -> str:
    """Compact JSON text, matching the shape browsers and Node produce."""
    return json.dumps(
        value, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=_json_default
    )


def encode_header(value: Any) -> str:
    """
    Encode a JSON-serializable value (or pydantic model) as a header token.

    Args:
        value: Any JSON-serializable value

    Returns:
        URL-safe, unpadded base64 of the value's UTF-8 JSON text
    """
    encoded = safe_base64_encode(to_json(value).encode("utf-8"))
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def decode_header(token: Any) -> Optional[Any]:
    """
    Decode a header token back into its JSON value.

    Args:
        token: URL-safe base64 text, padded or not

    Returns:
        The parsed JSON value, or None if the token is not valid base64,
        not UTF-8, or not JSON (NaN and Infinity included).
        A token carrying JSON null also decodes to None, so callers
        cannot tell it apart from malformed input.
    """
    if not isinstance(token, str):
        logger.warning(f"x402: Header token is not a string: {type(token).__name__}")
        return None

    b64 = token.replace("-", "+").replace("_", "/")
    b64 += "=" * (-len(b64) % 4)

    try:
        # safe_base64_decode returns str, not bytes
        decoded_str = safe_base64_decode(b64)
        if decoded_str is None:
            logger.warning("x402: Failed to decode header token: invalid base64")
            return None
        return json.loads(decoded_str, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        logger.warning(f"x402: Failed to parse header JSON: {e}")
        return None
    except (ValueError, TypeError) as e:
        logger.warning(f"x402: Failed to decode header token: {e}")
        return None
