"""Callable endpoints used by the mobile clients.

Each call is ``POST /api/callable/<name>`` with a camelCase JSON body. Failures
are raised as :class:`app.core.errors.CallableError` and rendered by the
handler registered in ``app.main``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_caller
from app.config import get_settings
from app.core.errors import GROUP_NOT_FOUND, NOT_IN_GROUP, NotFound, PermissionDenied
from app.core.security import CallerIdentity
from app.database import get_db
from app.models import Group
from app.schemas import (
    CallableOk,
    GroupLiveRequest,
    GroupLiveTokenRequest,
    GroupPresenceRequest,
    LivePresenceRequest,
    LiveTokenRead,
)
from app.services.live import (
    get_group_live_token,
    require_group_id,
    start_group_live,
    stop_group_live,
)
from app.services.membership import invalidate_members_count
from app.services.presence import (
    has_active_presence,
    remove_live_presence,
    remove_presence,
    touch_live_presence,
    touch_presence,
)
from app.services.profiles import resolve_display_identity
from grouplive.presence import HOST_ROLE, normalise_role

router = APIRouter(prefix="/callable", tags=["callable"])


def _require_group(db: Session, group_id: str) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFound(GROUP_NOT_FOUND)
    return group


@router.post("/startGroupLive", response_model=CallableOk)
def start_group_live_call(
    payload: GroupLiveRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    return start_group_live(db, caller, payload.group_id)


@router.post("/stopGroupLive", response_model=CallableOk)
def stop_group_live_call(
    payload: GroupLiveRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    return stop_group_live(db, caller, payload.group_id)


@router.post("/getGroupLiveToken", response_model=LiveTokenRead)
def get_group_live_token_call(
    payload: GroupLiveTokenRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, str]:
    return get_group_live_token(
        db, caller, payload.group_id, role=payload.role, host_id=payload.host_id
    )


@router.post("/touchGroupPresence", response_model=CallableOk)
def touch_group_presence_call(
    payload: GroupPresenceRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    """Heartbeat marking the caller as present in the group."""

    group_id = require_group_id(payload.group_id)
    _require_group(db, group_id)
    identity = resolve_display_identity(db, caller, get_settings().default_display_name)
    touch_presence(db, group_id, caller.uid, name=identity.name, photo=identity.photo)
    invalidate_members_count(group_id)
    return {"ok": True}


@router.post("/touchLivePresence", response_model=CallableOk)
def touch_live_presence_call(
    payload: LivePresenceRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    """Heartbeat of a live participant; hosts send it while broadcasting.

    Only members with an active group presence may join the live host set.
    """

    group_id = require_group_id(payload.group_id)
    _require_group(db, group_id)
    if not has_active_presence(db, group_id, caller.uid):
        raise PermissionDenied(NOT_IN_GROUP)
    role = normalise_role(payload.role) if payload.role is not None else HOST_ROLE
    identity = resolve_display_identity(db, caller, get_settings().default_display_name)
    touch_live_presence(
        db, group_id, caller.uid, name=identity.name, photo=identity.photo, role=role
    )
    return {"ok": True}


@router.post("/leaveGroupPresence", response_model=CallableOk)
def leave_group_presence_call(
    payload: GroupPresenceRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    group_id = require_group_id(payload.group_id)
    remove_presence(db, group_id, caller.uid)
    invalidate_members_count(group_id)
    return {"ok": True}


@router.post("/leaveLivePresence", response_model=CallableOk)
def leave_live_presence_call(
    payload: GroupPresenceRequest,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> dict[str, bool]:
    group_id = require_group_id(payload.group_id)
    remove_live_presence(db, group_id, caller.uid)
    return {"ok": True}
