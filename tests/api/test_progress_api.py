"""Tests for lesson view and completion, course progress and enrollment endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import mint_token


def test_complete_lesson(client: TestClient, auth: dict[str, str]) -> None:
    client.post("/v1/progress/lessons/py-1/complete", headers=auth)
    resp = client.post("/v1/progress/lessons/py-2/complete", headers=auth)
    assert resp.status_code == 200
    assert resp.json() == {
        "course_id": "c-py",
        "completed_count": 2,
        "total_count": 4,
        "is_complete": False,
        "percentage": 50,
        "next_lesson_id": "py-3",
        "viewed_count": 2,
        "total_problems": 2,
        "solved_problems": 0,
    }


def test_complete_lesson_is_idempotent(client: TestClient, auth: dict[str, str]) -> None:
    first = client.post("/v1/progress/lessons/py-1/complete", headers=auth)
    second = client.post("/v1/progress/lessons/py-1/complete", headers=auth)
    assert first.json() == second.json()
    assert second.json()["completed_count"] == 1


def test_unknown_lesson_is_404(client: TestClient, auth: dict[str, str]) -> None:
    resp = client.post("/v1/progress/lessons/nope/complete", headers=auth)
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_get_and_reset_course(client: TestClient, auth: dict[str, str]) -> None:
    client.post("/v1/progress/lessons/ds-1/complete", headers=auth)
    assert client.get("/v1/progress/courses/c-ds", headers=auth).json()["percentage"] == 25

    resp = client.delete("/v1/progress/courses/c-ds", headers=auth)
    assert resp.status_code == 200
    assert resp.json()["completed_count"] == 0
    assert client.get("/v1/progress/courses/c-ds", headers=auth).json()["completed_count"] == 0


def test_unknown_course_is_404(client: TestClient, auth: dict[str, str]) -> None:
    assert client.get("/v1/progress/courses/c-nope", headers=auth).status_code == 404


def test_progress_is_isolated_between_learners(
    client: TestClient, auth: dict[str, str]
) -> None:
    client.post("/v1/progress/lessons/py-1/complete", headers=auth)
    other = {"Authorization": f"Bearer {mint_token('learner-2')}"}
    resp = client.get("/v1/progress/courses/c-py", headers=other)
    assert resp.json()["completed_count"] == 0


def test_enroll(client: TestClient, auth: dict[str, str]) -> None:
    first = client.post("/v1/progress/courses/c-web/enroll", headers=auth)
    second = client.post("/v1/progress/courses/c-web/enroll", headers=auth)
    assert first.json() == {"course_id": "c-web", "enrolled": True}
    assert second.json() == {"course_id": "c-web", "enrolled": False}


def test_enroll_unknown_course(client: TestClient, auth: dict[str, str]) -> None:
    assert client.post("/v1/progress/courses/c-nope/enroll", headers=auth).status_code == 404


def test_draft_lesson_cannot_be_completed(client: TestClient, auth: dict[str, str]) -> None:
    resp = client.post("/v1/progress/lessons/web-draft-1/complete", headers=auth)
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"
    assert client.get("/v1/progress/courses/c-web", headers=auth).json()["viewed_count"] == 0


def test_view_then_uncomplete(client: TestClient, auth: dict[str, str]) -> None:
    viewed = client.post("/v1/progress/lessons/py-3/view", headers=auth).json()
    assert (viewed["viewed_count"], viewed["completed_count"]) == (1, 0)

    client.post("/v1/progress/lessons/py-3/complete", headers=auth)
    resp = client.delete("/v1/progress/lessons/py-3/complete", headers=auth)
    assert resp.status_code == 200
    body = resp.json()
    assert (body["viewed_count"], body["completed_count"]) == (1, 0)
    assert body["next_lesson_id"] == "py-1"


def test_course_progress_counts_solved_problems(
    client: TestClient, auth: dict[str, str]
) -> None:
    client.post("/v1/problems/p-list/submit", json={"output": "[3, 2, 1]"}, headers=auth)
    body = client.get("/v1/progress/courses/c-py", headers=auth).json()
    assert (body["solved_problems"], body["total_problems"]) == (1, 2)
