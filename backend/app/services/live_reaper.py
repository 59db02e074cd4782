"""Periodic correction of live sessions whose hosts silently went away."""

from __future__ import annotations

import logging
import time
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Group
from app.monitoring import metrics
from app.services.live import mark_session_stale, within_start_grace
from app.services.presence import active_host_ids
from grouplive.presence import as_utc, utcnow

logger = logging.getLogger(__name__)

JOB_NAME = "stale_live_sessions"


def end_stale_live_sessions(db: Session, *, now: datetime | None = None) -> dict[str, int]:
    """
    Deactivate every active live session that has no active host left.

    Each group is handled in its own transaction; a failure is logged and the
    sweep moves on to the next group.

    Returns:
        dict with counts of scanned, ended and failed groups.
    """
    current = as_utc(now) if now is not None else utcnow()
    stats = {"scanned": 0, "ended": 0, "failed": 0}

    group_ids = list(db.execute(select(Group.id).where(Group.live_active.is_(True))).scalars())
    db.rollback()

    for group_id in group_ids:
        stats["scanned"] += 1
        try:
            group = db.get(Group, group_id)
            if group is None or not group.live_active:
                continue
            if within_start_grace(group, current):
                continue
            if active_host_ids(db, group_id, now=current):
                db.rollback()
                continue
            if mark_session_stale(db, group_id, current):
                stats["ended"] += 1
                metrics.live_sessions_ended_stale_total.inc(source="sweep")
                logger.info(f"Live session in group {group_id} ended as stale")
        except Exception as e:
            db.rollback()
            stats["failed"] += 1
            metrics.reaper_item_failures_total.inc(job=JOB_NAME)
            logger.error(f"Error checking live session of group {group_id}: {e}", exc_info=True)

    metrics.reaper_runs_total.inc(job=JOB_NAME)
    metrics.reaper_last_run_timestamp.set(time.time(), job=JOB_NAME)
    if stats["ended"] or stats["failed"]:
        logger.info(
            f"Stale live sweep: {stats['scanned']} scanned, "
            f"{stats['ended']} ended, {stats['failed']} failed"
        )
    return stats
