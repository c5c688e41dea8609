"""
Opaque cursor codecs.

Two formats share the ``Cursor`` wire type:

- offset cursors: base64 of the row's zero-based position as a decimal
  string (``"MTk="`` is row 19);
- keyset cursors: url-safe base64 of a small JSON document carrying the
  row's sort values, its primary key and the signature of the query
  context that minted it.

Decoding is strict. Anything that is not exactly what the encoder would
have produced raises ``InvalidCursorError``; a bad cursor never falls back
to the start of the list.
"""

import base64
import binascii
import json
from typing import Any, Sequence

from connection_core.constants import KEYSET_CURSOR_VERSION
from connection_core.exceptions import InvalidCursorError, ValidationError
from connection_core.storage.query.coercion import coerce_value, to_wire
from connection_core.storage.query.sorting import SortKey


def encode_cursor(position: int) -> str:
    """
    Encode a zero-based row position as an offset cursor.

    Example:
        >>> encode_cursor(19)
        'MTk='
    """
    if position < 0:
        raise ValueError("Cursor position must be non-negative")
    return base64.b64encode(str(position).encode("ascii")).decode("ascii")


def decode_cursor(cursor: str) -> int:
    """
    Decode an offset cursor back to its row position.

    Raises:
        InvalidCursorError: If the cursor is not base64 of a canonical
            non-negative decimal.
    """
    try:
        text = base64.b64decode(cursor, validate=True).decode("ascii")
    except (binascii.Error, ValueError):
        raise InvalidCursorError("Malformed pagination cursor")

    if not text.isdigit() or text != str(int(text)):
        raise InvalidCursorError("Malformed pagination cursor")
    return int(text)


def encode_keyset_cursor(values: Sequence[Any], signature: str) -> str:
    """
    Encode a row's sort key values as a keyset cursor.

    Args:
        values: One value per compiled sort key, primary key last.
        signature: Signature of the query context (see ``build_plan``).
    """
    payload = {
        "v": KEYSET_CURSOR_VERSION,
        "s": signature,
        "k": [to_wire(value) for value in values],
    }
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_keyset_cursor(
    cursor: str, signature: str, sort_keys: Sequence[SortKey]
) -> list[Any]:
    """
    Decode a keyset cursor minted for the same query context.

    Args:
        cursor: Cursor string as received from the caller.
        signature: Signature of the current query context.
        sort_keys: Compiled sort keys of the current query.

    Returns:
        Sort values coerced to their column types, primary key last.

    Raises:
        InvalidCursorError: If the cursor is malformed, from another cursor
            version, or was minted under a different sort/filter context.
    """
    try:
        raw = base64.b64decode(cursor, altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError):
        raise InvalidCursorError("Malformed pagination cursor")

    if not isinstance(payload, dict) or payload.get("v") != KEYSET_CURSOR_VERSION:
        raise InvalidCursorError("Malformed pagination cursor")
    if payload.get("s") != signature:
        raise InvalidCursorError(
            "Cursor does not belong to this sort and filter context"
        )

    values = payload.get("k")
    if not isinstance(values, list) or len(values) != len(sort_keys):
        raise InvalidCursorError("Malformed pagination cursor")

    decoded = []
    for key, value in zip(sort_keys, values):
        if value is None:
            decoded.append(None)
            continue
        if not isinstance(value, str):
            raise InvalidCursorError("Malformed pagination cursor")
        try:
            decoded.append(coerce_value(key.column, value, key.field))
        except ValidationError:
            raise InvalidCursorError("Malformed pagination cursor")
    return decoded
