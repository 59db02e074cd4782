"""Schemas for group creation and detail views."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr


class GroupCreate(BaseModel):
    """Payload for creating a new group."""

    title: constr(strip_whitespace=True, min_length=1, max_length=128) = Field(
        ..., description="Human readable group title"
    )
    subtitle: constr(strip_whitespace=True, max_length=512) | None = Field(
        default=None, description="Optional short description"
    )


class LiveSessionRead(BaseModel):
    """Live session state embedded in a group."""

    active: bool
    host_id: str | None = None
    host_name: str | None = None
    host_photo: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    ended_reason: str | None = None


class GroupRead(BaseModel):
    """Group representation returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    subtitle: str | None = None
    owner_id: str | None = None
    created_at: datetime
    updated_at: datetime


class GroupDetail(GroupRead):
    """Group metadata plus the live session and aggregated member count."""

    members_count: int
    live: LiveSessionRead
