"""Wall-clock scheduling helpers for the periodic sweeps."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def parse_clock(value: str) -> time:
    """Parse an ``HH:MM`` string into a :class:`datetime.time`."""

    hours, _, minutes = value.partition(":")
    return time(hour=int(hours), minute=int(minutes))


def next_daily_run(now: datetime, at: time, tz_name: str) -> datetime:
    """Return the next instant (UTC) at which local time ``at`` occurs.

    ``now`` must be timezone aware. If the local time has already passed today
    the run is scheduled for tomorrow, so the result is always in the future.
    """

    zone = ZoneInfo(tz_name)
    local_now = now.astimezone(zone)
    candidate = datetime.combine(local_now.date(), at, tzinfo=zone)
    if candidate <= local_now:
        candidate = datetime.combine(local_now.date() + timedelta(days=1), at, tzinfo=zone)
    return candidate.astimezone(timezone.utc)


def seconds_until(target: datetime, now: datetime) -> float:
    return max((target - now).total_seconds(), 0.0)
