"""Input validation utilities for the panel."""

import re
from datetime import date, datetime, timezone

from wa_panel.core.messages import ErrorMessages

# User input constraints
MAX_MESSAGE_LENGTH = 4096  # WhatsApp text body limit
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
NON_DIGITS = re.compile(r"\D")


class ValidationError(ValueError):
    """Raised when validation fails."""

    pass


def sanitize_message_text(text: str | None) -> str:
    """Sanitize an outgoing chat message.

    Args:
        text: Raw message typed by the agent

    Returns:
        Sanitized text

    Raises:
        ValidationError: If input is empty or exceeds limits
    """
    if not text:
        raise ValidationError(ErrorMessages.MESSAGE_REQUIRED)

    sanitized = CONTROL_CHARS.sub("", text).strip()
    if not sanitized:
        raise ValidationError(ErrorMessages.MESSAGE_REQUIRED)

    if len(sanitized) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message too long: {len(sanitized)} > {MAX_MESSAGE_LENGTH} characters"
        )

    return sanitized


def digits_only(value: str | None) -> str:
    """Keep only the digits of a phone number."""
    if not value:
        return ""
    return NON_DIGITS.sub("", value)


def parse_date_param(value: str | None) -> date:
    """Parse a date-range query parameter to a UTC calendar date.

    Accepts ``YYYY-MM-DD`` or any ISO 8601 datetime. Offsets are converted to
    UTC first; the time of day is then discarded.

    Raises:
        ValidationError: If the value is missing or unparseable
    """
    if not value or not value.strip():
        raise ValidationError(ErrorMessages.INVALID_DATE_FORMAT.format(value=value))

    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(
            ErrorMessages.INVALID_DATE_FORMAT.format(value=value)
        ) from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def parse_optional_date_param(value: str | None) -> date | None:
    """Same as parse_date_param, but blank values mean no bound."""
    if value is None or not value.strip():
        return None
    return parse_date_param(value)
