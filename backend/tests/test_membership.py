"""Cached member counts."""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

from app.models import Group
from app.services import cache as cache_module
from app.services.membership import invalidate_members_count, members_count
from grouplive.presence import as_utc


def test_members_count_recomputes_and_writes_back(db_session, make_group, heartbeat, now):
    make_group("g1")
    heartbeat("g1", "alice")
    heartbeat("g1", "bob")
    heartbeat("g1", "carol", at=now - timedelta(minutes=5))

    assert members_count(db_session, "g1", now=now) == 2

    db_session.expire_all()
    group = db_session.get(Group, "g1")
    assert group.members_count == 2
    assert as_utc(group.members_updated_at) == now


def test_members_count_is_served_from_cache_until_invalidated(
    db_session, make_group, heartbeat, now
):
    make_group("g1")
    heartbeat("g1", "alice")
    assert members_count(db_session, "g1", now=now) == 1

    heartbeat("g1", "bob")
    assert members_count(db_session, "g1", now=now) == 1

    invalidate_members_count("g1")
    assert members_count(db_session, "g1", now=now) == 2


def test_members_count_does_not_touch_updated_at(db_session, make_group, heartbeat, now):
    make_group("g1", updated_at=now - timedelta(hours=3))
    heartbeat("g1", "alice")

    members_count(db_session, "g1", now=now)

    db_session.expire_all()
    assert as_utc(db_session.get(Group, "g1").updated_at) == now - timedelta(hours=3)


def test_in_memory_cache_entries_expire(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    cache = cache_module.InMemoryCache()

    cache.set("groups:g1:members_count", "3", 15)
    assert cache.get("groups:g1:members_count") == "3"

    clock[0] += 15
    assert cache.get("groups:g1:members_count") is None
    assert cache.get("missing") is None
