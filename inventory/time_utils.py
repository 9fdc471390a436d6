"""
Time helpers: the store keeps naive UTC datetimes, responses carry UTC offsets
"""

import time
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime, the form written to the database
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attaches UTC to a naive datetime read back from the database
    """
    if not value:
        return None

    # Already aware: normalise to UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)

    return value.replace(tzinfo=timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Converts client supplied datetimes to the naive UTC storage form
    """
    if not value:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def unix_now() -> int:
    return int(time.time())
