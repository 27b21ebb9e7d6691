"""
Time helpers shared by models and token handling.
"""
import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now (DB columns are stored without tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)
