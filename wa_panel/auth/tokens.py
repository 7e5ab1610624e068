"""Bearer token helpers.

Tokens are JWTs issued by the remote API. Only the payload segment is read
(``exp`` and the tenant claim); the signature is never verified here since
the remote API remains the authority on validity.
"""

import base64
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "
DEFAULT_EXPIRY_SKEW_SECONDS = 60


def clean_token(raw: str | None) -> str:
    """Strip a ``Bearer`` prefix and surrounding quotes, in either order."""
    if not raw:
        return ""
    token = raw.strip()
    for _ in range(2):
        if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
            token = token.strip('"').strip()
        if token.lower().startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):].strip()
    return token


def _b64url_decode(segment: str) -> bytes:
    padded = segment.replace("-", "+").replace("_", "/")
    padded += "=" * (-len(padded) % 4)
    return base64.b64decode(padded)


def decode_payload(token: str | None) -> dict[str, Any] | None:
    """Decode the claims segment of a JWT without verifying it.

    Returns:
        Claims dict, or None for anything that is not a decodable JWT.
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) < 2:
        return None
    try:
        claims = json.loads(_b64url_decode(parts[1]).decode("utf-8"))
    except ValueError:
        # binascii.Error, UnicodeDecodeError and JSONDecodeError are ValueErrors
        return None
    return claims if isinstance(claims, dict) else None


def get_claim(token: str | None, *names: str) -> str | None:
    """Read a claim from the token payload as a string."""
    claims = decode_payload(token)
    if not claims:
        return None
    for name in names:
        value = claims.get(name)
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (str, int)):
            return str(value)
    return None


def get_expiry(token: str | None) -> datetime | None:
    """Expiry of the token from its ``exp`` claim (int or numeric string)."""
    claims = decode_payload(token)
    if not claims or "exp" not in claims:
        return None
    exp = claims["exp"]
    try:
        if isinstance(exp, bool):
            return None
        if isinstance(exp, str):
            exp = int(exp.strip())
        if isinstance(exp, float):
            exp = int(exp)
        if not isinstance(exp, int):
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def is_token_expired(
    token: str | None,
    now: datetime | None = None,
    skew_seconds: int = DEFAULT_EXPIRY_SKEW_SECONDS,
) -> bool:
    """True when ``now >= exp - skew``.

    Unknown expiry (no token, malformed token, no ``exp``) counts as not
    expired.
    """
    expiry = get_expiry(token)
    if expiry is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now >= expiry - timedelta(seconds=skew_seconds)


def preview(token: str | None, length: int = 10) -> str:
    """Short, log-safe representation of a token."""
    if not token:
        return "(none)"
    return f"Bearer {token[:length]}..."
