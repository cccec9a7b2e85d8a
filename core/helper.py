from datetime import datetime
from typing import Callable, Optional
from pytz import UnknownTimeZoneError, timezone, utc
from core.log import logger

Clock = Callable[[], datetime]


def now_in_timezone(timezone_str: str = "Asia/Jakarta") -> datetime:
    """Current time, aware, in the given timezone. Falls back to UTC when
    the timezone name is unknown."""
    try:
        tz = timezone(timezone_str)
    except UnknownTimeZoneError:
        logger.error(f"Timezone {timezone_str} not found. Using UTC instead.")
        tz = utc
    return datetime.now(tz)


def align_timezone(value: Optional[datetime], reference: Optional[datetime]):
    """Give a naive `value` the timezone of an aware `reference`. Anything
    else is returned unchanged."""
    if value is None or reference is None:
        return value
    if value.tzinfo is not None or reference.tzinfo is None:
        return value
    tz = reference.tzinfo
    # pytz zones must localize, replace() would pick the LMT offset
    if hasattr(tz, "localize"):
        return tz.localize(value)
    return value.replace(tzinfo=tz)


def make_clock(timezone_str: str) -> Clock:
    def clock() -> datetime:
        return now_in_timezone(timezone_str)

    return clock
