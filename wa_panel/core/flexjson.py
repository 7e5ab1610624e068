"""Tolerant access to loosely structured JSON payloads.

The remote API wraps collections inconsistently (bare arrays, ``{"data": [...]}``,
reference-preserving ``{"$values": [...]}`` wrappers, ...) and names the same
field differently across endpoints (``contact_id``, ``ContactId``,
``contactoId``). Everything here works on parsed JSON (dicts/lists) and never
raises on a malformed payload: the worst case is an empty list or ``None``.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Iterable

Record = dict[str, Any]

# Second-level keys that hold the array inside a ``data`` object
_DATA_LIST_KEYS = ("values", "items", "list")
_SINGLE_WRAPPER_KEYS = ("data", "objeto")
_TOKEN_WRAPPER_KEYS = ("data", "objeto", "result")
_USER_KEYS = ("user", "usuario")

# .NET emits up to 7 fractional digits, fromisoformat accepts 6
_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_json(body: str | bytes | None) -> Any:
    """Parse a response body, returning None instead of raising."""
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def get_ci(record: Any, name: str) -> tuple[bool, Any]:
    """Case-insensitive key lookup.

    Returns:
        ``(found, value)``; the first key in enumeration order wins.
    """
    if not isinstance(record, dict):
        return False, None
    if name in record:
        return True, record[name]
    lowered = name.lower()
    for key, value in record.items():
        if isinstance(key, str) and key.lower() == lowered:
            return True, value
    return False, None


def _records(items: Iterable[Any]) -> list[Record]:
    return [item for item in items if isinstance(item, dict)]


def extract_records(payload: Any) -> list[Record]:
    """Locate the list of records inside an arbitrarily wrapped payload.

    Tried in order: a top-level array; a ``data`` field that is an array or
    holds a ``$values`` (or ``values``/``items``/``list``) array; a top-level
    ``$values`` array; the first array-valued field of the object. Anything
    else yields an empty list.
    """
    if isinstance(payload, list):
        return _records(payload)
    if not isinstance(payload, dict):
        return []

    found, data = get_ci(payload, "data")
    if found:
        if isinstance(data, list):
            return _records(data)
        if isinstance(data, dict):
            found, values = get_ci(data, "$values")
            if found and isinstance(values, list):
                return _records(values)
            for key in _DATA_LIST_KEYS:
                found, values = get_ci(data, key)
                if found and isinstance(values, list):
                    return _records(values)

    found, values = get_ci(payload, "$values")
    if found and isinstance(values, list):
        return _records(values)

    for value in payload.values():
        if isinstance(value, list):
            return _records(value)

    return []


def extract_single(payload: Any) -> Record | None:
    """Locate a single record, preferring a nested ``data``/``objeto`` object."""
    if not isinstance(payload, dict):
        return None
    for key in _SINGLE_WRAPPER_KEYS:
        found, value = get_ci(payload, key)
        if found and isinstance(value, dict):
            return value
    return payload


# ---------------------------------------------------------------------------
# Field accessors
# ---------------------------------------------------------------------------


def get_string(record: Any, *names: str) -> str | None:
    """First alias holding a string value."""
    for name in names:
        found, value = get_ci(record, name)
        if found and isinstance(value, str):
            return value
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def get_int(record: Any, *names: str) -> int | None:
    """First alias holding a number or a numeric-looking string."""
    for name in names:
        found, value = get_ci(record, name)
        if found:
            parsed = _as_int(value)
            if parsed is not None:
                return parsed
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
    return None


def get_bool(record: Any, *names: str) -> bool | None:
    """First alias holding a boolean, 0/1, or "true"/"false"."""
    for name in names:
        found, value = get_ci(record, name)
        if found:
            parsed = _as_bool(value)
            if parsed is not None:
                return parsed
    return None


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO 8601 string or Unix epoch seconds to an aware UTC datetime.

    Naive timestamps are taken to be UTC already.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION.sub(r"\1", raw)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def get_date(record: Any, *names: str) -> datetime | None:
    """First alias holding an ISO date string or epoch seconds, as UTC."""
    for name in names:
        found, value = get_ci(record, name)
        if found:
            parsed = parse_datetime(value)
            if parsed is not None:
                return parsed
    return None


# ---------------------------------------------------------------------------
# Login response helpers
# ---------------------------------------------------------------------------


def find_token(payload: Any) -> str | None:
    """Find the bearer token in a login response.

    Searched in order: top-level ``token``; ``token`` under ``data``,
    ``objeto`` or ``result``; ``token`` under any other nested object.
    """
    if not isinstance(payload, dict):
        return None

    token = get_string(payload, "token")
    if token is not None:
        return token

    for key in _TOKEN_WRAPPER_KEYS:
        found, node = get_ci(payload, key)
        if found and isinstance(node, dict):
            token = get_string(node, "token")
            if token is not None:
                return token

    for value in payload.values():
        if isinstance(value, dict):
            token = get_string(value, "token")
            if token is not None:
                return token

    return None


def find_user(payload: Any) -> Record:
    """Find the user object in a login response; flat payloads return the root."""
    if not isinstance(payload, dict):
        return {}

    for key in _USER_KEYS:
        found, node = get_ci(payload, key)
        if found and isinstance(node, dict):
            return node

    for wrapper in _TOKEN_WRAPPER_KEYS:
        found, node = get_ci(payload, wrapper)
        if found and isinstance(node, dict):
            for key in _USER_KEYS:
                found, user = get_ci(node, key)
                if found and isinstance(user, dict):
                    return user

    return payload
