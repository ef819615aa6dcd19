from __future__ import annotations

from datetime import datetime, timezone


def now_utc_iso(*, precise: bool = False) -> str:
    """Return an ISO timestamp in UTC.

    Seconds precision by default; ``precise`` keeps a fixed-width microsecond
    field so rows created within the same second still sort by creation order.
    """
    now = datetime.now(timezone.utc)
    if precise:
        return now.isoformat(timespec="microseconds")
    return now.replace(microsecond=0).isoformat()
