from datetime import date, datetime, timezone
from typing import Optional, Union

from sales_service.errors import InvalidArgument


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value: Optional[Union[str, date]], field: str = "date") -> date:
    """
    Parse an ISO-8601 date or datetime (``2024-05-01`` or
    ``2024-05-01T10:00:00.000Z``) into a ``date``.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise InvalidArgument(f"Please supply valid {field}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidArgument(f"Please supply valid {field}")


def month_bounds(moment: datetime):
    """Naive UTC [start, end) of the calendar month containing ``moment``."""
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        end = datetime(moment.year + 1, 1, 1)
    else:
        end = datetime(moment.year, moment.month + 1, 1)
    return start, end
