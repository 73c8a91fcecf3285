"""Wall-clock helpers. All timer timestamps are integer epoch milliseconds."""

import time
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(timestamp_ms: int) -> str:
    """Format epoch milliseconds as an ISO 8601 UTC string (``...Z`` suffix)."""
    dt = _EPOCH + timedelta(milliseconds=timestamp_ms)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 string, treating naive values as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
