"""Stale live session sweep and inactive group cleanup."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.core.errors import FailedPrecondition
from app.models import (
    Group,
    GroupMessage,
    LiveMessage,
    LivePresenceRecord,
    PresenceRecord,
    PrivateThread,
    PrivateThreadMessage,
)
from app.monitoring import metrics
from app.services import group_reaper, live_reaper
from app.services.group_reaper import cleanup_inactive_groups
from app.services.live import get_group_live_token, start_group_live
from app.services.live_reaper import end_stale_live_sessions
from conftest import caller, decode_media_token
from grouplive.presence import as_utc


def _count(db_session, model) -> int:
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


def test_sweep_ends_sessions_without_active_hosts(db_session, make_group, heartbeat, now):
    make_group("quiet", live_active=True, live_started_at=now - timedelta(hours=1))
    make_group("busy", live_active=True, live_started_at=now - timedelta(hours=1))
    make_group("idle")
    heartbeat("quiet", "alice", live_role="host", at=now - timedelta(minutes=3))
    heartbeat("busy", "bob", live_role="host", at=now - timedelta(seconds=30))

    stats = end_stale_live_sessions(db_session, now=now)

    assert stats == {"scanned": 2, "ended": 1, "failed": 0}
    db_session.expire_all()
    quiet = db_session.get(Group, "quiet")
    assert quiet.live_active is False
    assert quiet.live_ended_reason == "stale"
    assert as_utc(quiet.live_ended_at) == now
    assert db_session.get(Group, "busy").live_active is True
    assert metrics.live_sessions_ended_stale_total.value(source="sweep") == 1
    assert metrics.reaper_runs_total.value(job="stale_live_sessions") == 1


def test_sweep_is_idempotent(db_session, make_group, now):
    make_group("g1", live_active=True, live_started_at=now)

    assert end_stale_live_sessions(db_session, now=now)["ended"] == 1
    assert end_stale_live_sessions(db_session, now=now) == {"scanned": 0, "ended": 0, "failed": 0}


def test_host_disappears_then_viewer_is_refused(db_session, make_group, heartbeat, now):
    make_group("g1")
    heartbeat("g1", "alice", live_role="host")
    heartbeat("g1", "bob")
    start_group_live(db_session, caller("alice"), "g1", now=now)
    token = get_group_live_token(db_session, caller("bob"), "g1", role="viewer", now=now)["token"]
    assert decode_media_token(token)["video"]["canPublish"] is False

    later = now + timedelta(minutes=2, seconds=1)
    heartbeat("g1", "bob", at=later)
    assert end_stale_live_sessions(db_session, now=later)["ended"] == 1

    with pytest.raises(FailedPrecondition) as exc:
        get_group_live_token(db_session, caller("bob"), "g1", role="viewer", now=later)
    assert exc.value.message == "live-not-active"
    db_session.expire_all()
    assert db_session.get(Group, "g1").live_ended_reason == "stale"


def test_sweep_failure_in_one_group_does_not_stop_others(
    db_session, make_group, monkeypatch, now
):
    make_group("a", live_active=True, live_started_at=now)
    make_group("b", live_active=True, live_started_at=now)

    original = live_reaper.mark_session_stale

    def flaky(db, group_id, current):
        if group_id == "a":
            raise RuntimeError("boom")
        return original(db, group_id, current)

    monkeypatch.setattr(live_reaper, "mark_session_stale", flaky)

    stats = end_stale_live_sessions(db_session, now=now)

    assert stats == {"scanned": 2, "ended": 1, "failed": 1}
    db_session.expire_all()
    assert db_session.get(Group, "a").live_active is True
    assert db_session.get(Group, "b").live_active is False
    assert metrics.reaper_item_failures_total.value(job="stale_live_sessions") == 1


def _populate(db_session, group_id: str) -> None:
    db_session.add_all(
        [
            GroupMessage(group_id=group_id, sender_id="alice", text="hi"),
            LiveMessage(group_id=group_id, host_id="alice", sender_id="bob", text="hey"),
        ]
    )
    thread = PrivateThread(group_id=group_id, user_a_id="alice", user_b_id="bob")
    db_session.add(thread)
    db_session.flush()
    db_session.add(PrivateThreadMessage(thread_id=thread.id, sender_id="bob", text="psst"))
    db_session.commit()


def test_cleanup_deletes_idle_group_and_nested_data(db_session, make_group, heartbeat, now):
    make_group("old", updated_at=now - timedelta(hours=2))
    make_group("fresh", updated_at=now - timedelta(minutes=30))
    _populate(db_session, "old")
    _populate(db_session, "fresh")
    heartbeat("old", "alice", live_role="host", at=now - timedelta(minutes=45))

    stats = cleanup_inactive_groups(db_session, now=now)

    assert stats == {"scanned": 1, "skipped": 0, "deleted": 1, "failed": 0}
    db_session.expire_all()
    assert db_session.get(Group, "old") is None
    assert db_session.get(Group, "fresh") is not None
    assert _count(db_session, GroupMessage) == 1
    assert _count(db_session, LiveMessage) == 1
    assert _count(db_session, PrivateThread) == 1
    assert _count(db_session, PrivateThreadMessage) == 1
    assert _count(db_session, PresenceRecord) == 0
    assert _count(db_session, LivePresenceRecord) == 0
    assert metrics.groups_deleted_total.value() == 1


def test_cleanup_skips_groups_with_recent_presence(db_session, make_group, heartbeat, now):
    make_group("old", updated_at=now - timedelta(hours=2))
    heartbeat("old", "alice", at=now - timedelta(minutes=5))

    stats = cleanup_inactive_groups(db_session, now=now)

    assert stats == {"scanned": 1, "skipped": 1, "deleted": 0, "failed": 0}
    assert db_session.get(Group, "old") is not None


def test_cleanup_guard_window_is_exclusive(db_session, make_group, heartbeat, now):
    make_group("old", updated_at=now - timedelta(hours=2))
    heartbeat("old", "alice", at=now - timedelta(minutes=10))

    assert cleanup_inactive_groups(db_session, now=now)["deleted"] == 1


def test_cleanup_failure_in_one_group_does_not_stop_others(
    db_session, make_group, monkeypatch, now
):
    make_group("a", updated_at=now - timedelta(hours=2))
    make_group("b", updated_at=now - timedelta(hours=2))
    original = group_reaper.delete_group_cascade

    def flaky(db, group_id):
        if group_id == "a":
            raise RuntimeError("boom")
        original(db, group_id)

    monkeypatch.setattr(group_reaper, "delete_group_cascade", flaky)

    stats = cleanup_inactive_groups(db_session, now=now)

    assert stats == {"scanned": 2, "skipped": 0, "deleted": 1, "failed": 1}
    db_session.expire_all()
    assert db_session.get(Group, "a") is not None
    assert db_session.get(Group, "b") is None
