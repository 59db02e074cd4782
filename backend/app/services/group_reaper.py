"""Deletion of groups that have gone idle, together with all nested chat data."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models import (
    Group,
    GroupMessage,
    LiveMessage,
    LivePresenceRecord,
    PresenceRecord,
    PrivateThread,
    PrivateThreadMessage,
)
from app.monitoring import metrics
from grouplive.presence import as_utc, utcnow

logger = logging.getLogger(__name__)

JOB_NAME = "inactive_groups"


def has_recent_presence(db: Session, group_id: str, since: datetime) -> bool:
    stmt = (
        select(PresenceRecord.user_id)
        .where(PresenceRecord.group_id == group_id, PresenceRecord.active_at > since)
        .limit(1)
    )
    return db.execute(stmt).first() is not None


def delete_group_cascade(db: Session, group_id: str) -> None:
    """Delete a group's nested data and then the group itself.

    The group row goes last: if anything fails midway the group is still a
    candidate on the next sweep and the remaining rows are retried.
    """

    thread_ids = select(PrivateThread.id).where(PrivateThread.group_id == group_id)
    db.execute(delete(GroupMessage).where(GroupMessage.group_id == group_id))
    db.execute(delete(LiveMessage).where(LiveMessage.group_id == group_id))
    db.execute(
        delete(PrivateThreadMessage).where(PrivateThreadMessage.thread_id.in_(thread_ids))
    )
    db.execute(delete(PrivateThread).where(PrivateThread.group_id == group_id))
    db.execute(delete(PresenceRecord).where(PresenceRecord.group_id == group_id))
    db.execute(delete(LivePresenceRecord).where(LivePresenceRecord.group_id == group_id))
    db.execute(delete(Group).where(Group.id == group_id))


def cleanup_inactive_groups(db: Session, *, now: datetime | None = None) -> dict[str, int]:
    """
    Remove groups with no recent activity.

    A group is a candidate when ``updated_at`` is older than the retention
    window; it is still skipped when any member sent a heartbeat inside the
    guard window.

    Returns:
        dict with counts of scanned, skipped, deleted and failed groups.
    """
    settings = get_settings()
    current = as_utc(now) if now is not None else utcnow()
    retention_cutoff = current - timedelta(seconds=settings.group_retention_seconds)
    presence_cutoff = current - timedelta(seconds=settings.group_presence_guard_seconds)
    stats = {"scanned": 0, "skipped": 0, "deleted": 0, "failed": 0}

    candidates = list(
        db.execute(select(Group.id).where(Group.updated_at < retention_cutoff)).scalars()
    )
    db.rollback()

    for group_id in candidates:
        stats["scanned"] += 1
        try:
            if has_recent_presence(db, group_id, presence_cutoff):
                db.rollback()
                stats["skipped"] += 1
                continue
            delete_group_cascade(db, group_id)
            db.commit()
            stats["deleted"] += 1
            metrics.groups_deleted_total.inc()
            logger.info(f"Deleted inactive group {group_id}")
        except Exception as e:
            db.rollback()
            stats["failed"] += 1
            metrics.reaper_item_failures_total.inc(job=JOB_NAME)
            logger.error(f"Error deleting inactive group {group_id}: {e}", exc_info=True)

    metrics.reaper_runs_total.inc(job=JOB_NAME)
    metrics.reaper_last_run_timestamp.set(time.time(), job=JOB_NAME)
    logger.info(
        f"Inactive group sweep: {stats['scanned']} candidate(s), {stats['deleted']} deleted, "
        f"{stats['skipped']} still active, {stats['failed']} failed"
    )
    return stats
