"""Structured errors returned by the callable endpoints.

Every failure carries a stable ``code`` (the category clients switch on) and a
short ``message`` naming the specific condition, e.g. ``permission-denied`` /
``not-in-group``. The HTTP status is only a transport detail.
"""

from __future__ import annotations

from fastapi import status


class CallableError(Exception):
    """Base class for errors surfaced to callers as ``{code, message}``."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, dict[str, str]]:
        return {"error": {"code": self.code, "message": self.message}}


class Unauthenticated(CallableError):
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidArgument(CallableError):
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(CallableError):
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(CallableError):
    code = "permission-denied"
    status_code = status.HTTP_403_FORBIDDEN


class FailedPrecondition(CallableError):
    code = "failed-precondition"
    status_code = status.HTTP_412_PRECONDITION_FAILED


class AlreadyExists(CallableError):
    """Reserved for start races reported to clients as a retry signal."""

    code = "already-exists"
    status_code = status.HTTP_409_CONFLICT


# Messages shared between the coordinators and their tests.
AUTH_REQUIRED = "auth-required"
MISSING_GROUP_ID = "missing-group-id"
INVALID_HOST_ID = "invalid-host-id"
NOT_IN_GROUP = "not-in-group"
GROUP_NOT_FOUND = "group-not-found"
LIVE_NOT_ACTIVE = "live-not-active"
NOT_LIVE_HOST = "not-live-host"
CONFIG_MISSING = "livekit-config-missing"
