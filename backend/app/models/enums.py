from __future__ import annotations

from enum import Enum


class LiveRole(str, Enum):
    """Roles a participant can hold inside a live session."""

    HOST = "host"
    VIEWER = "viewer"


class LiveEndedReason(str, Enum):
    """Why a live session was deactivated by the system rather than a host."""

    STALE = "stale"
