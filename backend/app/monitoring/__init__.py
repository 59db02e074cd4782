"""Metric registry and the live session and sweep metrics exported on /metrics."""

from . import metrics, registry

__all__ = ["metrics", "registry"]
