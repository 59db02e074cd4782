from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import LiveRole
from grouplive.presence import utcnow


def _new_group_id() -> str:
    return uuid.uuid4().hex


class Group(Base):
    """Group chat with its embedded live session state."""

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_group_id)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(512))
    owner_id: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    # Bumped explicitly on user activity only; sweeps must not refresh it.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    members_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    members_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    live_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    live_host_id: Mapped[str | None] = mapped_column(String(128))
    live_host_name: Mapped[str | None] = mapped_column(String(128))
    live_host_photo: Mapped[str | None] = mapped_column(String(1024))
    live_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    live_ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    live_ended_reason: Mapped[str | None] = mapped_column(String(32))

    presence: Mapped[list["PresenceRecord"]] = relationship(back_populates="group")
    live_presence: Mapped[list["LivePresenceRecord"]] = relationship(back_populates="group")

    __table_args__ = (
        Index("ix_groups_updated_at", "updated_at"),
        Index("ix_groups_live_active", "live_active"),
    )


class PresenceRecord(Base):
    """Heartbeat of a user inside a group; defines group membership liveness."""

    __tablename__ = "group_presence"

    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    active_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    name: Mapped[str | None] = mapped_column(String(128))
    photo: Mapped[str | None] = mapped_column(String(1024))

    group: Mapped[Group] = relationship(back_populates="presence")

    __table_args__ = (Index("ix_group_presence_active", "group_id", "active_at"),)


class LivePresenceRecord(Base):
    """Heartbeat of a live session participant, tagged with its role."""

    __tablename__ = "group_live_presence"

    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    active_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    name: Mapped[str | None] = mapped_column(String(128))
    photo: Mapped[str | None] = mapped_column(String(1024))
    role: Mapped[str] = mapped_column(String(16), default=LiveRole.HOST.value, nullable=False)

    group: Mapped[Group] = relationship(back_populates="live_presence")

    __table_args__ = (
        Index("ix_group_live_presence_role_active", "group_id", "role", "active_at"),
    )


class GroupMessage(Base):
    """Message posted in the group chat."""

    __tablename__ = "group_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_name: Mapped[str | None] = mapped_column(String(128))
    text: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class LiveMessage(Base):
    """Chat message attached to a host's live broadcast."""

    __tablename__ = "group_live_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    host_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_name: Mapped[str | None] = mapped_column(String(128))
    text: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class PrivateThread(Base):
    """One-to-one side conversation opened from within a group."""

    __tablename__ = "group_private_threads"

    id: Mapped[int] = mapped_column(primary_key=True)
    group_id: Mapped[str] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_a_id: Mapped[str] = mapped_column(String(128), nullable=False)
    user_b_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    messages: Mapped[list["PrivateThreadMessage"]] = relationship(back_populates="thread")


class PrivateThreadMessage(Base):
    __tablename__ = "group_private_thread_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    thread_id: Mapped[int] = mapped_column(
        ForeignKey("group_private_threads.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    text: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    thread: Mapped[PrivateThread] = relationship(back_populates="messages")


class Profile(Base):
    """Canonical display identity of a user, owned by the profile service."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(128))
    photo: Mapped[str | None] = mapped_column(String(1024))
