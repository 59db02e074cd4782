"""Display identity lookups against the profile store."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.security import CallerIdentity
from app.models import Profile


@dataclass(slots=True, frozen=True)
class DisplayIdentity:
    name: str
    photo: str


def get_profile_snapshot(db: Session, user_id: str) -> DisplayIdentity | None:
    """Return the stored profile name/photo, or ``None`` when no profile exists."""

    profile = db.get(Profile, user_id)
    if profile is None:
        return None
    return DisplayIdentity(name=profile.name or "", photo=profile.photo or "")


def resolve_display_identity(
    db: Session, caller: CallerIdentity, fallback_name: str
) -> DisplayIdentity:
    """Profile first, then the token claims, then ``fallback_name``."""

    profile = get_profile_snapshot(db, caller.uid)
    name = (profile.name if profile else "") or caller.name or fallback_name
    photo = (profile.photo if profile else "") or caller.picture or ""
    return DisplayIdentity(name=name, photo=photo)
