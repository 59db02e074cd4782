"""Database models package."""

from .base import Base
from .enums import LiveEndedReason, LiveRole
from .groups import (
    Group,
    GroupMessage,
    LiveMessage,
    LivePresenceRecord,
    PresenceRecord,
    PrivateThread,
    PrivateThreadMessage,
    Profile,
)

__all__ = [
    "Base",
    "Group",
    "PresenceRecord",
    "LivePresenceRecord",
    "GroupMessage",
    "LiveMessage",
    "PrivateThread",
    "PrivateThreadMessage",
    "Profile",
    "LiveRole",
    "LiveEndedReason",
]
