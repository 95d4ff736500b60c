"""
Opaque pagination cursors.

A cursor is the url-safe base64 encoding of an item key serialized as
compact JSON. A leading "-" marks a cursor that pages backward.

    encode_next({"ID": 1, "Range": 3})  ->  "eyJJRCI6MSwiUmFuZ2UiOjN9"
    encode_prev({"ID": 1, "Range": 3})  ->  "-eyJJRCI6MSwiUmFuZ2UiOjN9"
"""

import base64
import json
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple

from ._logging import logger
from .exceptions import CursorFormatError

BACKWARD_MARKER = "-"


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


class Cursor(NamedTuple):
    key: dict[str, Any]
    direction: Direction

    @property
    def is_backward(self) -> bool:
        return self.direction is Direction.BACKWARD


def _json_default(value: Any) -> Any:
    # Keys read back from DynamoDB may still carry Decimals
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(key: dict[str, Any]) -> str:
    payload = json.dumps(key, separators=(",", ":"), default=_json_default)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def encode_next(key: dict[str, Any]) -> str:
    """Encode an item key as a forward cursor."""
    return _encode(key)


def encode_prev(key: dict[str, Any]) -> str:
    """Encode an item key as a backward cursor."""
    return BACKWARD_MARKER + _encode(key)


def is_backward(token: str | None) -> bool:
    return token is not None and token.startswith(BACKWARD_MARKER)


def decode_cursor(token: str, key_names: Iterable[str]) -> Cursor:
    """
    Decode a cursor back into an item key and a direction.

    Args:
        token: The cursor string as handed out in a page result
        key_names: The table's key attribute names

    Returns:
        Cursor with the decoded key and its direction

    Raises:
        CursorFormatError: If the payload is not base64 JSON or its
            attributes differ from the table's key attributes
    """
    if not isinstance(token, str) or not token:
        raise CursorFormatError(str(token), "cursor must be a non-empty string")

    direction = Direction.FORWARD
    payload = token
    if token.startswith(BACKWARD_MARKER):
        direction = Direction.BACKWARD
        payload = token[len(BACKWARD_MARKER) :]

    # Accept standard-alphabet and padded payloads as well
    normalized = payload.translate(str.maketrans("+/", "-_")).rstrip("=")
    normalized += "=" * (-len(normalized) % 4)

    try:
        raw = base64.b64decode(normalized.encode("ascii"), altchars=b"-_", validate=True)
        key = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise CursorFormatError(token, "payload is not base64url encoded JSON", e) from e

    if not isinstance(key, dict):
        raise CursorFormatError(token, "payload is not a JSON object")

    expected = set(key_names)
    if set(key) != expected:
        missing = sorted(expected - set(key))
        unexpected = sorted(set(key) - expected)
        reason = "key attributes do not match the table key"
        if missing:
            reason += f" (missing: {', '.join(missing)})"
        if unexpected:
            reason += f" (unexpected: {', '.join(unexpected)})"
        raise CursorFormatError(token, reason)

    logger.debug("Decoded page cursor", extra={"direction": direction.value})
    return Cursor(key=key, direction=direction)
