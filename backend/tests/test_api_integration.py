"""End-to-end flows through the HTTP surface."""

from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient

from app.models import LivePresenceRecord, PresenceRecord
from app.services.live_reaper import end_stale_live_sessions
from conftest import auth_headers, decode_media_token


def call(client: TestClient, call_name: str, body: dict[str, Any], uid: str | None, **claims):
    headers = auth_headers(uid, **claims) if uid else {}
    return client.post(f"/api/callable/{call_name}", json=body, headers=headers)


def create_group(client: TestClient, uid: str, title: str = "Aperitivo") -> str:
    response = client.post("/api/groups", json={"title": title}, headers=auth_headers(uid))
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_health_and_root(client: TestClient):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/api/").status_code == 200


def test_callables_require_authentication(client: TestClient):
    response = call(client, "startGroupLive", {"groupId": "g1"}, uid=None)

    assert response.status_code == 401
    assert response.json() == {"error": {"code": "unauthenticated", "message": "auth-required"}}

    response = client.post(
        "/api/callable/startGroupLive",
        json={"groupId": "g1"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


def test_missing_group_id_is_invalid_argument(client: TestClient):
    response = call(client, "startGroupLive", {}, uid="alice")

    assert response.status_code == 400
    assert response.json()["error"] == {"code": "invalid-argument", "message": "missing-group-id"}


def test_malformed_body_is_invalid_argument(client: TestClient):
    response = client.post(
        "/api/callable/startGroupLive",
        content="not json",
        headers={**auth_headers("alice"), "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid-argument"


def test_touch_presence_requires_existing_group(client: TestClient):
    response = call(client, "touchGroupPresence", {"groupId": "missing"}, uid="alice")

    assert response.status_code == 404
    assert response.json()["error"] == {"code": "not-found", "message": "group-not-found"}


def test_start_without_presence_is_denied(client: TestClient):
    group_id = create_group(client, "alice")

    response = call(client, "startGroupLive", {"groupId": group_id}, uid="alice")

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "not-in-group"


def test_presence_heartbeats_feed_member_count(client: TestClient, session_factory):
    group_id = create_group(client, "alice")
    assert call(client, "touchGroupPresence", {"groupId": group_id}, uid="alice", name="Alice").json() == {"ok": True}

    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("alice")).json()
    assert detail["members_count"] == 1

    call(client, "touchGroupPresence", {"groupId": group_id}, uid="bob")
    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("alice")).json()
    assert detail["members_count"] == 2

    call(client, "leaveGroupPresence", {"groupId": group_id}, uid="bob")
    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("alice")).json()
    assert detail["members_count"] == 1

    with session_factory() as session:
        record = session.get(PresenceRecord, (group_id, "alice"))
        assert record.name == "Alice"


def test_live_session_flow_with_failover(client: TestClient, session_factory):
    group_id = create_group(client, "alice")
    for uid in ("alice", "bob", "carol"):
        assert call(client, "touchGroupPresence", {"groupId": group_id}, uid=uid).status_code == 200
    for uid in ("alice", "bob"):
        response = call(client, "touchLivePresence", {"groupId": group_id, "role": "host"}, uid=uid)
        assert response.status_code == 200

    assert call(client, "startGroupLive", {"groupId": group_id}, uid="alice", name="Alice").json() == {"ok": True}
    assert call(client, "startGroupLive", {"groupId": group_id}, uid="bob").json() == {"ok": True}

    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("carol")).json()
    assert detail["live"]["active"] is True
    assert detail["live"]["host_id"] == "bob"
    started_at = detail["live"]["started_at"]
    assert started_at is not None

    response = call(
        client,
        "getGroupLiveToken",
        {"groupId": group_id, "role": "viewer", "hostId": "alice"},
        uid="carol",
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert set(body) == {"token", "url"}
    assert body["url"].startswith("wss://")
    video = decode_media_token(body["token"])["video"]
    assert video["canPublish"] is False
    assert video["canSubscribe"] is True

    response = call(client, "stopGroupLive", {"groupId": group_id}, uid="carol")
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "not-live-host"

    assert call(client, "stopGroupLive", {"groupId": group_id}, uid="alice").json() == {"ok": True}
    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("carol")).json()
    assert detail["live"]["active"] is True
    assert detail["live"]["started_at"] == started_at

    assert call(client, "stopGroupLive", {"groupId": group_id}, uid="bob").json() == {"ok": True}
    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("carol")).json()
    assert detail["live"]["active"] is False
    assert detail["live"]["ended_at"] is not None
    assert detail["live"]["ended_reason"] is None

    response = call(client, "stopGroupLive", {"groupId": group_id}, uid="bob")
    assert response.status_code == 412
    assert response.json()["error"] == {"code": "failed-precondition", "message": "live-not-active"}

    with session_factory() as session:
        assert session.query(LivePresenceRecord).count() == 0


def test_non_member_cannot_join_host_set(client: TestClient, session_factory):
    group_id = create_group(client, "alice")
    call(client, "touchGroupPresence", {"groupId": group_id}, uid="alice")
    call(client, "touchLivePresence", {"groupId": group_id}, uid="alice")
    call(client, "startGroupLive", {"groupId": group_id}, uid="alice")

    response = call(client, "touchLivePresence", {"groupId": group_id, "role": "host"}, uid="mallory")
    assert response.status_code == 403
    assert response.json()["error"] == {"code": "permission-denied", "message": "not-in-group"}

    response = call(client, "stopGroupLive", {"groupId": group_id}, uid="mallory")
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "not-live-host"

    call(client, "leaveLivePresence", {"groupId": group_id}, uid="alice")
    with session_factory() as session:
        assert session.get(LivePresenceRecord, (group_id, "mallory")) is None
        assert end_stale_live_sessions(session)["ended"] == 1

    detail = client.get(f"/api/groups/{group_id}", headers=auth_headers("alice")).json()
    assert detail["live"]["active"] is False
    assert detail["live"]["ended_reason"] == "stale"


def test_leave_live_presence_removes_host(client: TestClient, session_factory):
    group_id = create_group(client, "alice")
    call(client, "touchGroupPresence", {"groupId": group_id}, uid="alice")
    call(client, "touchLivePresence", {"groupId": group_id}, uid="alice")
    call(client, "startGroupLive", {"groupId": group_id}, uid="alice")

    assert call(client, "leaveLivePresence", {"groupId": group_id}, uid="alice").json() == {"ok": True}

    response = call(client, "stopGroupLive", {"groupId": group_id}, uid="alice")
    assert response.status_code == 403
    response = call(client, "getGroupLiveToken", {"groupId": group_id}, uid="alice")
    assert response.status_code == 412
    with session_factory() as session:
        assert session.get(LivePresenceRecord, (group_id, "alice")) is None


def test_metrics_endpoint_reports_live_counters(client: TestClient):
    group_id = create_group(client, "alice")
    call(client, "touchGroupPresence", {"groupId": group_id}, uid="alice")
    call(client, "startGroupLive", {"groupId": group_id}, uid="alice")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'live_sessions_started_total{outcome="started"} 1' in response.text
    assert "live_sessions_active 1" in response.text
