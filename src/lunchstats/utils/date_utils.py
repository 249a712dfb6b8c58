"""Date helpers for delivery date keys.

A date key is the ``YYYY-MM-DD`` string used everywhere a delivery date is
stored or sent over the wire.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union

DATE_KEY_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

INVALID_DATE = 'Invalid Date'
NEVER = 'Never'

DateInput = Union[str, date, datetime]


def _to_date(value: DateInput) -> date:
    if isinstance(value, datetime):
        return _utc_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if DATE_KEY_PATTERN.match(text):
            return date.fromisoformat(text)
        # Accept full ISO timestamps such as '2024-03-15T10:30:00Z'
        return _utc_date(datetime.fromisoformat(text.replace('Z', '+00:00')))
    raise TypeError(f"Unsupported date value: {value!r}")


def _utc_date(value: datetime) -> date:
    # Offset-aware times are keyed by their UTC date; naive times are local
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def format_date_key(value: DateInput) -> str:
    """Normalize a date, datetime or date string to ``YYYY-MM-DD``.

    Applying it to its own output returns the same key.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    try:
        return _to_date(value).isoformat()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date value {value!r}: {e}") from e


def is_valid_date_key(value) -> bool:
    """Return True if value is a ``YYYY-MM-DD`` string naming a real calendar day."""
    if not isinstance(value, str) or not DATE_KEY_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
        return True
    except ValueError:
        return False


def get_today_date_string(today: Optional[DateInput] = None) -> str:
    """Get today's date key, or the key of an injected ``today``."""
    if today is None:
        return date.today().isoformat()
    return format_date_key(today)


def format_date_string(value: Optional[DateInput]) -> str:
    """Format a date for display, e.g. ``Mar 15, 2024``.

    Returns ``'Never'`` for absent input and ``'Invalid Date'`` when the
    value cannot be parsed.
    """
    if value is None or value == '':
        return NEVER
    try:
        parsed = _to_date(value)
    except (TypeError, ValueError):
        return INVALID_DATE
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def is_today(value: Optional[DateInput], today: Optional[DateInput] = None) -> bool:
    """Check whether a date falls on today. Invalid input yields False."""
    if value is None or value == '':
        return False
    try:
        return _to_date(value) == _to_date(today if today is not None else date.today())
    except (TypeError, ValueError):
        return False
