"""Framework-independent rules for group live sessions."""

from .grants import (  # noqa: F401
    AccessGrant,
    MediaConfigError,
    MediaServiceConfig,
    mask_value,
    mint_access_token,
)
from .presence import (  # noqa: F401
    HOST_ROLE,
    VIEWER_ROLE,
    active_cutoff,
    as_utc,
    normalise_role,
    utcnow,
)
from .schedule import next_daily_run, parse_clock, seconds_until  # noqa: F401

__all__ = [
    "AccessGrant",
    "MediaConfigError",
    "MediaServiceConfig",
    "mask_value",
    "mint_access_token",
    "HOST_ROLE",
    "VIEWER_ROLE",
    "active_cutoff",
    "as_utc",
    "normalise_role",
    "utcnow",
    "next_daily_run",
    "parse_clock",
    "seconds_until",
]
