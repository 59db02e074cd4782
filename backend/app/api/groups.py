"""Group creation and detail endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_caller
from app.core.errors import GROUP_NOT_FOUND, NotFound
from app.core.security import CallerIdentity
from app.database import get_db
from app.models import Group
from app.schemas import GroupCreate, GroupDetail, GroupRead, LiveSessionRead
from app.services.membership import members_count
from grouplive.presence import utcnow

router = APIRouter(prefix="/groups", tags=["groups"])


def _to_detail(db: Session, group: Group) -> GroupDetail:
    live = LiveSessionRead(
        active=group.live_active,
        host_id=group.live_host_id,
        host_name=group.live_host_name,
        host_photo=group.live_host_photo,
        started_at=group.live_started_at,
        ended_at=group.live_ended_at,
        ended_reason=group.live_ended_reason,
    )
    count = members_count(db, group.id)
    return GroupDetail(
        **GroupRead.model_validate(group).model_dump(), members_count=count, live=live
    )


@router.post("", response_model=GroupRead, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> Group:
    """Create a group owned by the caller."""

    now = utcnow()
    group = Group(
        title=payload.title,
        subtitle=payload.subtitle,
        owner_id=caller.uid,
        created_at=now,
        updated_at=now,
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    return group


@router.get("/{group_id}", response_model=GroupDetail)
def read_group(
    group_id: str,
    db: Session = Depends(get_db),
    caller: CallerIdentity = Depends(get_current_caller),
) -> GroupDetail:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFound(GROUP_NOT_FOUND)
    return _to_detail(db, group)
