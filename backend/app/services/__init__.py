"""Application service helpers."""

from .cache import get_cache
from .live import get_group_live_token, start_group_live, stop_group_live
from .membership import invalidate_members_count, members_count
from .presence import (
    active_host_ids,
    has_active_presence,
    remove_live_presence,
    remove_presence,
    touch_live_presence,
    touch_presence,
)

__all__ = [
    "get_cache",
    "start_group_live",
    "stop_group_live",
    "get_group_live_token",
    "members_count",
    "invalidate_members_count",
    "active_host_ids",
    "has_active_presence",
    "touch_presence",
    "touch_live_presence",
    "remove_presence",
    "remove_live_presence",
]
