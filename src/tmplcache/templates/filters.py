"""Jinja2 filters registered on every compiled template.

Pages get a small set of presentation helpers so handlers can pass raw values
(datetimes, counts) instead of pre-formatted strings.
"""

from datetime import UTC, datetime
from typing import Any


def format_datetime(dt: datetime | str | None, fmt: str = "%Y-%m-%d %H:%M:%S UTC") -> str:
    """Format a datetime for display.

    Args:
        dt: Datetime object or ISO string
        fmt: strftime format

    Returns:
        Formatted date string, "N/A" for None, or the input string unchanged
        if it is not ISO formatted
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    # Naive datetimes are treated as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime(fmt)


def pluralize(count: int, singular: str = "", plural: str = "s") -> str:
    """Return the suffix matching a count.

    Examples:
        >>> "item" + pluralize(1)
        'item'
        >>> "item" + pluralize(3)
        'items'
    """
    return singular if count == 1 else plural


def is_empty(value: Any) -> bool:
    """Check if a value is effectively empty (None, blank string, empty collection)."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


DEFAULT_FILTERS = {
    "format_datetime": format_datetime,
    "pluralize": pluralize,
}

DEFAULT_TESTS = {
    "empty": is_empty,
}
