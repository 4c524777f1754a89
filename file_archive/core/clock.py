"""Time helpers shared by the stores and the release gate."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def release_time(created: datetime, seconds_before_release: int) -> datetime:
    """The moment a file created at ``created`` becomes downloadable."""
    return as_utc(created) + timedelta(seconds=seconds_before_release)


def is_released(created: datetime, seconds_before_release: int, now: Optional[datetime] = None) -> bool:
    now = now or utc_now()
    return as_utc(now) >= release_time(created, seconds_before_release)
