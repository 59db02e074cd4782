"""Core utilities for the Group Live backend."""

from .errors import CallableError
from .security import CallerIdentity, resolve_caller

__all__ = ["CallableError", "CallerIdentity", "resolve_caller"]
