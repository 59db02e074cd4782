"""Live session coordinators: start, stop and access token minting.

The session state lives on the group row, but who is broadcasting is always
re-derived from host heartbeats in ``group_live_presence``. Only the start
path needs a locked read-modify-write; every other writer is an idempotent,
conditional update that is safe under last-writer-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import (
    CONFIG_MISSING,
    GROUP_NOT_FOUND,
    INVALID_HOST_ID,
    LIVE_NOT_ACTIVE,
    MISSING_GROUP_ID,
    NOT_IN_GROUP,
    NOT_LIVE_HOST,
    AlreadyExists,
    FailedPrecondition,
    InvalidArgument,
    NotFound,
    PermissionDenied,
)
from app.core.security import CallerIdentity
from app.models import Group, LiveEndedReason
from app.monitoring import metrics
from app.services.presence import (
    active_host_ids,
    has_active_presence,
    is_active_host,
    remove_live_presence,
)
from app.services.profiles import get_profile_snapshot, resolve_display_identity
from grouplive.grants import (
    AccessGrant,
    MediaConfigError,
    MediaServiceConfig,
    mask_value,
    mint_access_token,
)
from grouplive.presence import HOST_ROLE, as_utc, normalise_role, utcnow

logger = logging.getLogger(__name__)


def require_group_id(value: Any) -> str:
    """Validate the ``groupId`` argument shared by every live call."""

    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(MISSING_GROUP_ID)
    return value.strip()


def _get_group(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFound(GROUP_NOT_FOUND)
    return group


def within_start_grace(group: Group, now: datetime) -> bool:
    """Whether the session started recently enough to tolerate a missing host."""

    grace = get_settings().live_start_grace_seconds
    if grace <= 0 or group.live_started_at is None:
        return False
    return now - as_utc(group.live_started_at) <= timedelta(seconds=grace)


def mark_session_stale(db: Session, group_id: str, now: datetime) -> bool:
    """Deactivate an active session with ``endedReason="stale"``.

    Conditional on the session still being active so concurrent healers and
    sweeps end it only once. Returns whether this call performed the flip.
    """

    result = db.execute(
        update(Group)
        .where(Group.id == group_id, Group.live_active.is_(True))
        .values(
            live_active=False,
            live_ended_at=now,
            live_ended_reason=LiveEndedReason.STALE.value,
        )
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    return bool(result.rowcount)


def start_group_live(
    db: Session, caller: CallerIdentity, group_id: Any, *, now: datetime | None = None
) -> dict[str, bool]:
    """Activate the group's live session or re-join it as a host."""

    settings = get_settings()
    group_id = require_group_id(group_id)
    current = as_utc(now) if now is not None else utcnow()

    if not has_active_presence(db, group_id, caller.uid, now=current):
        raise PermissionDenied(NOT_IN_GROUP)

    host = resolve_display_identity(db, caller, settings.default_display_name)

    try:
        group = db.execute(
            select(Group).where(Group.id == group_id).with_for_update()
        ).scalar_one_or_none()
        if group is None:
            db.rollback()
            raise NotFound(GROUP_NOT_FOUND)

        was_active = group.live_active
        if not was_active:
            group.live_active = True
            group.live_started_at = current
            group.live_ended_at = None
            group.live_ended_reason = None
        group.live_host_id = caller.uid
        group.live_host_name = host.name
        group.live_host_photo = host.photo
        group.updated_at = current
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.warning("Live start for group %s lost a lock race: %s", group_id, exc)
        raise AlreadyExists("live-start-conflict") from exc

    outcome = "rejoined" if was_active else "started"
    metrics.live_sessions_started_total.inc(outcome=outcome)
    logger.info("Live session in group %s %s by %s", group_id, outcome, caller.uid)
    return {"ok": True}


def stop_group_live(
    db: Session, caller: CallerIdentity, group_id: Any, *, now: datetime | None = None
) -> dict[str, bool]:
    """Leave the host set, deactivating the session when no other host remains.

    Two hosts stopping at the same instant may both see the other as still
    active (or both see none); either way the end state is consistent and the
    next sweep corrects any leftover session.
    """

    group_id = require_group_id(group_id)
    current = as_utc(now) if now is not None else utcnow()

    group = _get_group(db, group_id)
    if not group.live_active:
        raise FailedPrecondition(LIVE_NOT_ACTIVE)
    if not is_active_host(db, group_id, caller.uid, now=current):
        raise PermissionDenied(NOT_LIVE_HOST)

    remaining = active_host_ids(db, group_id, now=current, exclude=caller.uid)
    remove_live_presence(db, group_id, caller.uid)

    if remaining:
        metrics.live_sessions_stopped_total.inc(outcome="failover")
        logger.info(
            "Host %s left live session in group %s; %d host(s) remain",
            caller.uid,
            group_id,
            len(remaining),
        )
        return {"ok": True}

    db.execute(
        update(Group)
        .where(Group.id == group_id)
        .values(live_active=False, live_ended_at=current, live_ended_reason=None)
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    metrics.live_sessions_stopped_total.inc(outcome="ended")
    logger.info("Live session in group %s ended by %s", group_id, caller.uid)
    return {"ok": True}


def get_group_live_token(
    db: Session,
    caller: CallerIdentity,
    group_id: Any,
    role: Any = None,
    host_id: Any = None,
    *,
    now: datetime | None = None,
) -> dict[str, str]:
    """Mint a media access token for a member joining the group's live session."""

    settings = get_settings()
    group_id = require_group_id(group_id)
    role = normalise_role(role)
    if host_id is not None and not isinstance(host_id, str):
        raise InvalidArgument(INVALID_HOST_ID)
    current = as_utc(now) if now is not None else utcnow()

    if not has_active_presence(db, group_id, caller.uid, now=current):
        raise PermissionDenied(NOT_IN_GROUP)

    group = _get_group(db, group_id)
    if not group.live_active:
        raise FailedPrecondition(LIVE_NOT_ACTIVE)

    if role != HOST_ROLE and not within_start_grace(group, current):
        if not active_host_ids(db, group_id, now=current):
            if mark_session_stale(db, group_id, current):
                metrics.live_sessions_ended_stale_total.inc(source="token")
                logger.info("Live session in group %s had no active host; marked stale", group_id)
            raise FailedPrecondition(LIVE_NOT_ACTIVE)

    profile = get_profile_snapshot(db, caller.uid)
    identity_name = (profile.name if profile else "") or caller.name or caller.uid

    try:
        config = MediaServiceConfig.from_values(
            settings.livekit_api_key, settings.livekit_api_secret, settings.livekit_url
        )
    except MediaConfigError as exc:
        logger.error("Media service configuration is incomplete; cannot mint live tokens")
        raise FailedPrecondition(CONFIG_MISSING) from exc

    logger.info(
        "Minting live token url=%s api_key=%s group=%s role=%s user=%s host=%s",
        config.url,
        mask_value(config.api_key),
        group_id,
        role,
        caller.uid,
        host_id or group.live_host_id,
    )
    grant = AccessGrant.for_role(room=group_id, identity=caller.uid, name=identity_name, role=role)
    token = mint_access_token(
        grant, config, ttl=timedelta(seconds=settings.livekit_token_ttl_seconds)
    )
    metrics.live_tokens_minted_total.inc(role=role)
    return {"token": token, "url": config.url}
