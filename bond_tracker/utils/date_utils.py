from datetime import datetime, time, timezone
from typing import Any


def parse_transaction_date(value: Any) -> datetime:
    """
    Parse an ISO-8601 transaction timestamp into a naive datetime.

    Aware timestamps are normalised to UTC so that records entered with and
    without an offset can still be ordered against each other.

    Raises:
        ValueError: If the value is not an ISO-8601 string or datetime
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"Invalid date format: '{value}'. Expected ISO-8601")
    else:
        raise ValueError(f"Expected string for date, got {type(value)}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_end_date(value: Any) -> datetime:
    """
    Parse the upper bound of a date range. A bare date such as '2024-01-31'
    covers that whole day, so it resolves to the last instant of the day.
    """
    parsed = parse_transaction_date(value)
    # YYYY-MM-DD with no time part
    if isinstance(value, str) and len(value.strip()) == 10:
        return datetime.combine(parsed.date(), time.max)
    return parsed
