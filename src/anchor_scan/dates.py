"""Calendar-date parsing for search boundaries."""

from datetime import date, datetime, timedelta

from .errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD date.

    The value must round-trip exactly, so "2023-2-1", "2023-02-30" and
    anything carrying a time or timezone are rejected.
    """
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date {value!r}. Please use YYYY-MM-DD.") from e

    if parsed.isoformat() != value:
        raise ValidationError(f"Invalid date {value!r}. Please use YYYY-MM-DD.")
    return parsed


def default_range(today: date | None = None, lookback_days: int = 30) -> tuple[date, date]:
    """Return (date_after, date_before) covering the last `lookback_days` days."""
    today = today or date.today()
    return today - timedelta(days=lookback_days), today
