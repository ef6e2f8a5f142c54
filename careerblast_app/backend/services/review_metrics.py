"""
Reporting values shown on the admin review surface.
"""
import math
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60


def application_age_in_days(submitted_at: datetime, now: datetime) -> int:
    """Whole days since submission, rounded up: a 1-hour-old application is 1 day old."""
    elapsed = abs((now - submitted_at).total_seconds())
    return math.ceil(elapsed / SECONDS_PER_DAY)


def review_time(submitted_at: datetime, reviewed_at: Optional[datetime]) -> Optional[timedelta]:
    if reviewed_at is None:
        return None
    return abs(reviewed_at - submitted_at)


def review_time_in_hours(submitted_at: datetime, reviewed_at: Optional[datetime]) -> Optional[float]:
    elapsed = review_time(submitted_at, reviewed_at)
    if elapsed is None:
        return None
    return round(elapsed.total_seconds() / SECONDS_PER_HOUR, 1)


def average_review_time(pairs: Iterable[Tuple[datetime, Optional[datetime]]]) -> Optional[timedelta]:
    """
    Mean of (reviewed_at - submitted_at) over the reviewed pairs.

    Pairs without a review timestamp are ignored; returns None when nothing was reviewed.
    """
    durations = [review_time(submitted, reviewed) for submitted, reviewed in pairs if reviewed is not None]
    if not durations:
        return None
    return sum(durations, timedelta()) / len(durations)


def average_review_time_hours(pairs: Iterable[Tuple[datetime, Optional[datetime]]]) -> Optional[float]:
    average = average_review_time(pairs)
    if average is None:
        return None
    return round(average.total_seconds() / SECONDS_PER_HOUR, 1)
