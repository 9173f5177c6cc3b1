"""
Local-time helpers.

Timestamps are stored as naive UTC. Ticket codes, dashboard trends and aging
are expressed in the operating timezone (America/Mexico_City).
"""

from datetime import datetime, date, timezone
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("America/Mexico_City")


def utcnow() -> datetime:
    """Naive UTC now, matching what the models store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(LOCAL_TZ)


def local_date(value: datetime) -> date:
    return to_local(value).date()


def local_today(now: datetime = None) -> date:
    return local_date(now or utcnow())
