"""Date and time utility functions."""
from datetime import date, datetime, timezone
from typing import Optional, Tuple

KHMER_DIGITS = "០១២៣៤៥៦៧៨៩"


def now_iso() -> str:
    """Current UTC instant in ISO 8601, e.g. 2025-11-20T08:15:30.123456+00:00."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp, accepting the trailing 'Z' JavaScript writes.

    Returns:
        Timezone-aware datetime, or None if value is empty or malformed
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: Optional[str]) -> Tuple[int, datetime]:
    """Sort key that puts missing or malformed timestamps last when descending."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return (0, datetime.min.replace(tzinfo=timezone.utc))
    return (1, parsed)


def parse_date(date_str: str) -> date:
    """
    Parse date string in YYYY-MM-DD format.

    Raises:
        ValueError: If date format is invalid
    """
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def to_khmer_numerals(number: int) -> str:
    """Render an integer with Khmer digits: 125 -> '១២៥'."""
    return "".join(KHMER_DIGITS[int(ch)] if ch.isdigit() else ch for ch in str(number))
