from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def iso_z(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def iso_z_from_epoch(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return iso_z(datetime.fromtimestamp(float(ts), tz=timezone.utc))


def epoch_ms() -> int:
    return int(time.time() * 1000)
