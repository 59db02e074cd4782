"""Presence heartbeats and the recency-filtered queries built on them.

Membership and host status are never stored as flags: they are re-derived on
every decision from the heartbeat tables, filtered by the presence TTL.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import LivePresenceRecord, LiveRole, PresenceRecord
from grouplive.presence import active_cutoff, as_utc, utcnow

logger = logging.getLogger(__name__)


def presence_ttl() -> timedelta:
    return timedelta(seconds=get_settings().presence_ttl_seconds)


def _cutoff(now: datetime | None) -> datetime:
    return active_cutoff(now if now is not None else utcnow(), presence_ttl())


def has_active_presence(
    db: Session, group_id: str, user_id: str, *, now: datetime | None = None
) -> bool:
    """Whether ``user_id`` sent a group heartbeat within the TTL window."""

    stmt = select(PresenceRecord.user_id).where(
        PresenceRecord.group_id == group_id,
        PresenceRecord.user_id == user_id,
        PresenceRecord.active_at >= _cutoff(now),
    )
    return db.execute(stmt).first() is not None


def count_active_members(db: Session, group_id: str, *, now: datetime | None = None) -> int:
    stmt = select(func.count()).select_from(PresenceRecord).where(
        PresenceRecord.group_id == group_id,
        PresenceRecord.active_at >= _cutoff(now),
    )
    return int(db.execute(stmt).scalar_one())


def active_host_ids(
    db: Session,
    group_id: str,
    *,
    now: datetime | None = None,
    exclude: str | None = None,
) -> list[str]:
    """Users currently broadcasting in ``group_id``, derived from host heartbeats."""

    stmt = select(LivePresenceRecord.user_id).where(
        LivePresenceRecord.group_id == group_id,
        LivePresenceRecord.role == LiveRole.HOST.value,
        LivePresenceRecord.active_at >= _cutoff(now),
    )
    if exclude is not None:
        stmt = stmt.where(LivePresenceRecord.user_id != exclude)
    return list(db.execute(stmt.order_by(LivePresenceRecord.user_id)).scalars())


def is_active_host(
    db: Session, group_id: str, user_id: str, *, now: datetime | None = None
) -> bool:
    stmt = select(LivePresenceRecord.user_id).where(
        LivePresenceRecord.group_id == group_id,
        LivePresenceRecord.user_id == user_id,
        LivePresenceRecord.role == LiveRole.HOST.value,
        LivePresenceRecord.active_at >= _cutoff(now),
    )
    return db.execute(stmt).first() is not None


def _upsert(db: Session, model, group_id: str, user_id: str, values: dict) -> None:
    record = db.get(model, (group_id, user_id))
    if record is None:
        db.add(model(group_id=group_id, user_id=user_id, **values))
        try:
            db.commit()
            return
        except IntegrityError:
            # A concurrent heartbeat from the same user inserted the row first.
            db.rollback()
            record = db.get(model, (group_id, user_id))
            if record is None:
                raise
    for key, value in values.items():
        setattr(record, key, value)
    db.commit()


def touch_presence(
    db: Session,
    group_id: str,
    user_id: str,
    *,
    name: str | None,
    photo: str | None,
    now: datetime | None = None,
) -> None:
    """Record a group heartbeat for ``user_id``."""

    active_at = as_utc(now) if now is not None else utcnow()
    _upsert(db, PresenceRecord, group_id, user_id, {"active_at": active_at, "name": name, "photo": photo})
    logger.debug("Presence heartbeat for %s in group %s", user_id, group_id)


def touch_live_presence(
    db: Session,
    group_id: str,
    user_id: str,
    *,
    name: str | None,
    photo: str | None,
    role: str = LiveRole.HOST.value,
    now: datetime | None = None,
) -> None:
    """Record a live session heartbeat for ``user_id`` with the given role."""

    active_at = as_utc(now) if now is not None else utcnow()
    _upsert(
        db,
        LivePresenceRecord,
        group_id,
        user_id,
        {"active_at": active_at, "name": name, "photo": photo, "role": role},
    )
    logger.debug("Live heartbeat for %s (%s) in group %s", user_id, role, group_id)


def remove_presence(db: Session, group_id: str, user_id: str) -> bool:
    result = db.execute(
        delete(PresenceRecord).where(
            PresenceRecord.group_id == group_id, PresenceRecord.user_id == user_id
        )
    )
    db.commit()
    return bool(result.rowcount)


def remove_live_presence(db: Session, group_id: str, user_id: str) -> bool:
    result = db.execute(
        delete(LivePresenceRecord).where(
            LivePresenceRecord.group_id == group_id, LivePresenceRecord.user_id == user_id
        )
    )
    db.commit()
    return bool(result.rowcount)
