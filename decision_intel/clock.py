"""
Time helpers.

All timestamps in the pipeline are naive UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Tuple


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    """Inclusive [start, end] range covering one calendar year."""
    return datetime(year, 1, 1), datetime(year, 12, 31, 23, 59, 59, 999999)


def month_key(moment: datetime) -> str:
    """YYYY-MM bucket for monthly volume counts."""
    return f"{moment.year}-{moment.month:02d}"
