"""
Time helpers shared by tokens, accounts and patient records.
"""
from datetime import datetime, time, timezone
from typing import Optional

# Wall-clock format used for shift timings, e.g. "3:04 PM"
SHIFT_TIME_FORMAT = "%I:%M %p"

def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.
    
    Naive values are taken to be UTC already; some backends (SQLite) drop
    the offset on the way back from storage.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def parse_shift_time(value: str) -> Optional[time]:
    """
    Parse a "3:04 PM" style shift timing.
    
    Args:
        value: Shift timing as sent by the client
        
    Returns:
        time if the value is well formed, None otherwise
    """
    try:
        return datetime.strptime(value.strip(), SHIFT_TIME_FORMAT).time()
    except (AttributeError, ValueError):
        return None

def format_shift_time(value: Optional[time]) -> Optional[str]:
    """Render a shift timing as "9:00 AM" (no leading zero)."""
    if value is None:
        return None
    return value.strftime(SHIFT_TIME_FORMAT).lstrip("0")
