"""Denormalized member counts for groups.

The count is a read optimisation only: heartbeats invalidate the cached value
and the next reader recomputes it from the presence table, writing it back on
the group row. Authorization never reads ``Group.members_count``.
"""

from __future__ import annotations

import logging
from datetime import datetime

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import Group
from app.services.cache import get_cache
from app.services.presence import count_active_members
from grouplive.presence import utcnow

logger = logging.getLogger(__name__)


def _cache_key(group_id: str) -> str:
    return f"groups:{group_id}:members_count"


def invalidate_members_count(group_id: str) -> None:
    """Drop the cached count so the next read recomputes it."""

    try:
        get_cache().delete(_cache_key(group_id))
    except RedisError as exc:
        logger.warning("Could not invalidate member count for group %s: %s", group_id, exc)


def members_count(db: Session, group_id: str, *, now: datetime | None = None) -> int:
    """Return the number of active members, recomputing when the cache is cold."""

    cache = get_cache()
    key = _cache_key(group_id)
    try:
        cached = cache.get(key)
    except RedisError as exc:
        logger.warning("Member count cache unavailable: %s", exc)
        cached = None
    if cached is not None:
        try:
            return int(cached)
        except ValueError:
            logger.warning("Discarding corrupt member count %r for group %s", cached, group_id)

    current = now if now is not None else utcnow()
    count = count_active_members(db, group_id, now=current)
    group = db.get(Group, group_id)
    if group is not None and group.members_count != count:
        group.members_count = count
        group.members_updated_at = current
        db.commit()

    try:
        cache.set(key, str(count), get_settings().members_count_cache_seconds)
    except RedisError as exc:
        logger.warning("Could not cache member count for group %s: %s", group_id, exc)
    return count
