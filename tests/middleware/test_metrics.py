"""Tests for Prometheus metrics middleware and engine counters.

NOTE ON TESTING PROMETHEUS METRICS:
The prometheus-client library uses a global default registry.  Counters
can only go up; they cannot be reset between tests.  To avoid test
pollution, we assert on DELTAS: read the value before the action, perform
the action, read the value after, and assert the difference.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY


def _get_sample(name: str, labels: dict | None = None) -> float:
    """Read a metric sample's current value from the global registry."""
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    after = _get_sample("http_requests_total", labels)
    assert after - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    after = _get_sample("http_request_duration_seconds_count", labels)
    assert after - before >= 1


def test_requests_are_labelled_by_route_template(
    client: TestClient, auth: dict[str, str]
) -> None:
    labels = {
        "method": "POST",
        "endpoint": "/v1/progress/lessons/{lesson_id}/complete",
        "status_code": "200",
    }
    before = _get_sample("http_requests_total", labels)
    client.post("/v1/progress/lessons/py-1/complete", headers=auth)
    client.post("/v1/progress/lessons/py-2/complete", headers=auth)
    after = _get_sample("http_requests_total", labels)
    assert after - before == 2


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "<unmatched>", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/thing")
    after = _get_sample("http_requests_total", labels)
    assert after - before == 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "http_request_duration_seconds" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    after = _get_sample("http_requests_total", labels)
    assert after == before


def test_freeze_outcomes_are_counted(client: TestClient, auth: dict[str, str]) -> None:
    consumed = {"outcome": "consumed"}
    refused = {"outcome": "already_frozen"}
    before = (
        _get_sample("streak_freezes_total", consumed),
        _get_sample("streak_freezes_total", refused),
    )
    client.post("/v1/streak/freeze", headers=auth)
    client.post("/v1/streak/freeze", headers=auth)
    after = (
        _get_sample("streak_freezes_total", consumed),
        _get_sample("streak_freezes_total", refused),
    )
    assert (after[0] - before[0], after[1] - before[1]) == (1, 1)


def test_xp_is_counted(client: TestClient, auth: dict[str, str]) -> None:
    labels = {"problem_type": "predict_output"}
    before = _get_sample("xp_awarded_total", labels)
    client.post(
        "/v1/problems/p-list/submit", json={"output": "[3, 2, 1]"}, headers=auth
    )
    after = _get_sample("xp_awarded_total", labels)
    assert after - before == 10
