# =======================================================================================
# valtrack/utils/timeutils.py - Date/Time Helpers
# =======================================================================================
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(day: Optional[date] = None) -> datetime:
    day = day or utcnow().date()
    return datetime.combine(day, time.min)


def day_bounds(day: Optional[date] = None) -> Tuple[datetime, datetime]:
    start = start_of_day(day)
    return start, start + timedelta(days=1)
