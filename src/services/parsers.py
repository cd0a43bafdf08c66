"""Date and ledger-month parsing utilities.

Ledger buckets are keyed by month in YYYY-MM format. Expense dates arrive as
ISO timestamps (optionally with a trailing "Z") or as datetime/date objects.

Example:
    >>> month_year_from_date("2025-07-27T19:17:09.299Z")
    '2025-07'

    >>> previous_month_year("2025-01")
    '2024-12'

    >>> month_range("2025-11", "2026-02")
    ['2025-11', '2025-12', '2026-01', '2026-02']
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[str, date, datetime]


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def parse_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Parse an ISO timestamp or date into a datetime.

    Timezone-aware values are converted to UTC so the ledger month does not
    depend on the offset they were written with. Naive values are kept as is.

    Args:
        value: ISO-8601 string (e.g., "2025-07-27T19:17:09.299Z"), date,
            datetime, or None/empty

    Returns:
        datetime object or None if input is empty/None

    Raises:
        ValueError: If a string value cannot be parsed

    Examples:
        >>> parse_datetime("2025-08-01")
        datetime.datetime(2025, 8, 1, 0, 0)
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Cannot parse date '{value}': {e}") from e
    return _to_utc(parsed)


def format_month_year(year: int, month: int) -> str:
    """Format a year and month (1-12) as YYYY-MM."""
    return f"{year:04d}-{month:02d}"


def month_year_from_date(value: Optional[DateLike] = None) -> str:
    """
    Derive the ledger month (YYYY-MM) of a date.

    Args:
        value: Date to convert; None means now

    Returns:
        Month key in YYYY-MM format
    """
    parsed = parse_datetime(value) or datetime.now()
    return format_month_year(parsed.year, parsed.month)


def parse_month_year(value: str) -> tuple[int, int]:
    """
    Split a YYYY-MM month key into (year, month).

    Raises:
        ValueError: If value is not in YYYY-MM format or month is out of range
    """
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid month '{value}': expected YYYY-MM") from e
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{value}': month must be 01-12")
    return year, month


def previous_month_year(value: str) -> str:
    """Return the month key immediately before `value`."""
    year, month = parse_month_year(value)
    if month == 1:
        return format_month_year(year - 1, 12)
    return format_month_year(year, month - 1)


def month_range(start: str, end: str) -> list[str]:
    """
    List every month key from start to end inclusive.

    Returns an empty list when end is before start.
    """
    year, month = parse_month_year(start)
    end_year, end_month = parse_month_year(end)

    months = []
    while (year, month) <= (end_year, end_month):
        months.append(format_month_year(year, month))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months
