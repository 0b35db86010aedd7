"""Local wall-clock time for a restaurant that closes its books at local midnight.

``datetime.now().astimezone()`` carries a fixed offset, so ``replace(hour=0)``
on a daylight-saving change day lands an hour away from the real midnight.
The zones here re-derive the offset for every wall time they are attached to.
"""

from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo


class SystemLocalZone(tzinfo):
    """The host's local zone, resolved through the C library rules on each use."""

    def utcoffset(self, dt: datetime | None) -> timedelta | None:
        if dt is None:
            return None
        return dt.replace(tzinfo=None).astimezone().utcoffset()

    def dst(self, dt: datetime | None) -> timedelta | None:
        return None

    def tzname(self, dt: datetime | None) -> str | None:
        if dt is None:
            return None
        return dt.replace(tzinfo=None).astimezone().tzname()

    def fromutc(self, dt: datetime) -> datetime:
        local = dt.replace(tzinfo=timezone.utc).astimezone()
        return local.replace(tzinfo=self)

    def __repr__(self) -> str:
        return "SystemLocalZone()"


def local_zone() -> tzinfo:
    name = os.getenv("ALFAMA_TIMEZONE")
    if name:
        return ZoneInfo(name)
    return SystemLocalZone()


def local_now() -> datetime:
    return datetime.now(local_zone())


def wall_time(day: date, at: time, tz: tzinfo | None) -> datetime:
    """``day`` at ``at`` in ``tz``, with the offset valid on that day."""
    return datetime.combine(day, at, tzinfo=tz)


def elapsed(since: datetime, until: datetime) -> timedelta:
    # Subtraction within one tzinfo compares wall times, so go through UTC.
    if since.tzinfo is None or until.tzinfo is None:
        return until - since
    return until.astimezone(timezone.utc) - since.astimezone(timezone.utc)
