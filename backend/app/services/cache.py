"""Expiring key/value store backing the member count cache."""

from __future__ import annotations

import threading
import time
from functools import lru_cache

from redis import Redis

from app.config import get_settings


class InMemoryCache:
    """Per-process store used when no Redis URL is configured."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._store[key] = (value, time.monotonic() + ttl_seconds)

    def get(self, key: str) -> str | None:
        with self._lock:
            value, expires_at = self._store.get(key, (None, 0.0))
            if value is not None and expires_at <= time.monotonic():
                del self._store[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)


class RedisCache:
    def __init__(self, url: str) -> None:
        self._client = Redis.from_url(url, decode_responses=True)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._client.setex(key, ttl_seconds, value)

    def get(self, key: str) -> str | None:
        return self._client.get(key)

    def delete(self, key: str) -> None:
        self._client.delete(key)


@lru_cache(maxsize=1)
def get_cache() -> InMemoryCache | RedisCache:
    settings = get_settings()
    if settings.cache_url:
        return RedisCache(settings.cache_url)
    return InMemoryCache()
