"""Time utility functions for blockchain data."""

from datetime import datetime, timezone
from typing import Callable, Optional, Union

Clock = Callable[[], datetime]


def get_current_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc_timestamp(timestamp: Union[int, float, datetime]) -> datetime:
    """Convert various timestamp formats to UTC datetime."""
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=timezone.utc)
        return timestamp.astimezone(timezone.utc)

    elif isinstance(timestamp, (int, float)):
        # Unix seconds
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    else:
        raise ValueError(f"Unsupported timestamp type: {type(timestamp)}")


def timestamp_to_unix(dt: datetime) -> float:
    """Convert datetime to Unix seconds."""
    return to_utc_timestamp(dt).timestamp()


def to_iso(dt: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    utc = to_utc_timestamp(dt)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def unix_to_iso(unix_time: Optional[Union[int, float]]) -> Optional[str]:
    """Unix seconds to ISO-8601, ``None`` passes through."""
    if unix_time is None:
        return None
    return to_iso(to_utc_timestamp(unix_time))


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns ``moment`` (UTC)."""
    captured = to_utc_timestamp(moment)
    return lambda: captured
