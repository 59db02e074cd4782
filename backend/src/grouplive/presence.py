"""Time-to-live helpers for presence heartbeats.

A presence record never expires on its own: it simply stops matching the
"active" predicate once its last heartbeat falls outside the TTL window.
The predicate is ``now - active_at <= ttl``, pushed into SQL ``WHERE``
clauses as ``active_at >= active_cutoff(now, ttl)``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

DEFAULT_PRESENCE_TTL = timedelta(minutes=2)

HOST_ROLE = "host"
VIEWER_ROLE = "viewer"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC.

    Some database drivers (SQLite in particular) hand back naive values even
    for ``DateTime(timezone=True)`` columns; all timestamps are stored in UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def active_cutoff(now: datetime, ttl: timedelta = DEFAULT_PRESENCE_TTL) -> datetime:
    """Oldest heartbeat timestamp that still counts as active at ``now``."""

    return as_utc(now) - ttl


def normalise_role(role: object) -> str:
    """Map any requested role onto ``host`` or ``viewer``."""

    if isinstance(role, str) and role.strip().lower() == HOST_ROLE:
        return HOST_ROLE
    return VIEWER_ROLE
