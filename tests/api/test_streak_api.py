"""Tests for time tracking, streak and weekly activity endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from progression.api.dependencies import content_repo, get_engine
from progression.core.clock import FixedClock
from progression.main import app
from progression.repos.event_store import InMemoryEventStore
from progression.services.engine import build_engine
from tests.conftest import TODAY


def test_track_time_starts_a_streak(client: TestClient, auth: dict[str, str]) -> None:
    resp = client.post("/v1/activity/time", json={"duration_seconds": 600}, headers=auth)
    assert resp.status_code == 201
    body = resp.json()
    assert body["current"] == 1
    assert body["state"] == "hot"
    assert body["today_active"] is True
    assert body["last_activity_day"] == TODAY
    assert (body["next_milestone"], body["milestone_progress"]) == (7, 14)


def test_track_time_rejects_non_positive(client: TestClient, auth: dict[str, str]) -> None:
    resp = client.post("/v1/activity/time", json={"duration_seconds": 0}, headers=auth)
    assert resp.status_code == 422


def test_streak_carries_across_days(
    client: TestClient, auth: dict[str, str], clock: FixedClock
) -> None:
    client.post("/v1/activity/time", json={"duration_seconds": 60}, headers=auth)
    clock.advance(days=1)
    client.post("/v1/activity/time", json={"duration_seconds": 60}, headers=auth)
    clock.advance(days=1)
    # No activity yet today: yesterday's streak still stands.
    body = client.get("/v1/streak", headers=auth).json()
    assert body["current"] == 2
    assert body["max"] == 2
    assert body["today_active"] is False


def test_fresh_streak_is_cold(client: TestClient, auth: dict[str, str]) -> None:
    body = client.get("/v1/streak", headers=auth).json()
    assert body["current"] == 0
    assert body["state"] == "cold"
    assert body["freezes_available"] == 2
    assert body["can_freeze_today"] is True


def test_freeze_once_per_day(client: TestClient, auth: dict[str, str]) -> None:
    first = client.post("/v1/streak/freeze", headers=auth)
    assert first.status_code == 200
    assert first.json()["freezes_available"] == 1
    assert first.json()["last_freeze_day"] == TODAY

    second = client.post("/v1/streak/freeze", headers=auth)
    assert second.status_code == 409
    assert second.json()["code"] == "already_frozen_today"


def test_freezes_run_out(
    client: TestClient, auth: dict[str, str], clock: FixedClock
) -> None:
    for _ in range(2):
        assert client.post("/v1/streak/freeze", headers=auth).status_code == 200
        clock.advance(days=1)
    resp = client.post("/v1/streak/freeze", headers=auth)
    assert resp.status_code == 409
    assert resp.json()["code"] == "no_freezes_available"


def test_week(client: TestClient, auth: dict[str, str], clock: FixedClock) -> None:
    client.post("/v1/activity/time", json={"duration_seconds": 1200}, headers=auth)
    clock.advance(days=1)
    client.post("/v1/activity/time", json={"duration_seconds": 1200}, headers=auth)

    body = client.get("/v1/activity/week", headers=auth).json()
    assert body["week_start"] == "2026-03-08"
    assert body["week_end"] == "2026-03-14"
    assert body["total_seconds"] == 2400
    assert body["active_days"] == 2
    assert body["daily_seconds"]["2026-03-11"] == 1200
    assert body["daily_seconds"]["2026-03-12"] == 1200


def test_week_with_anchor(client: TestClient, auth: dict[str, str]) -> None:
    body = client.get("/v1/activity/week?anchor=2026-02-18", headers=auth).json()
    assert (body["week_start"], body["week_end"]) == ("2026-02-15", "2026-02-21")


def test_week_with_bad_anchor(client: TestClient, auth: dict[str, str]) -> None:
    resp = client.get("/v1/activity/week?anchor=2026-13-45", headers=auth)
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_input"


class _DownEventStore(InMemoryEventStore):
    async def list_time(self, learner_id: str, from_day: str, to_day: str):
        raise OSError("connection refused")


def test_storage_outage_is_503(
    client: TestClient, auth: dict[str, str], clock: FixedClock
) -> None:
    down = build_engine(_DownEventStore(), content_repo, clock=clock)
    app.dependency_overrides[get_engine] = lambda: down
    resp = client.get("/v1/activity/week", headers=auth)
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"
    assert resp.json()["code"] == "storage_unavailable"
