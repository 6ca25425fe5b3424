from __future__ import annotations

import sys
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from progression.api import dependencies
from progression.api.dependencies import content_repo, event_store, get_clock
from progression.core.clock import FixedClock
from progression.main import app
from progression.models.career import CareerPath, CareerSkill, SkillContribution
from progression.models.course import Course, Lesson
from progression.models.problem import Problem, ProblemOption
from progression.repos.content_repo import InMemoryContentRepo
from progression.repos.event_store import InMemoryEventStore
from progression.services import token_service
from progression.services.engine import Engine, build_engine
from progression.services.learner_lock import learner_lock

# Ensure repo root is on sys.path so `import progression` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Wednesday. Its week runs Sunday 2026-03-08 .. Saturday 2026-03-14.
NOW = datetime(2026, 3, 11, 12, 0, tzinfo=UTC)
TODAY = "2026-03-11"


@pytest.fixture(autouse=True)
def reset_event_store() -> None:
    """Clear the API's in-memory event store between tests."""
    event_store._learners.clear()
    event_store._completions.clear()
    event_store._time.clear()
    event_store._attempts.clear()
    event_store._enrollments.clear()


@pytest.fixture(autouse=True)
def reset_content_repo() -> None:
    content_repo._courses.clear()
    content_repo._courses_by_slug.clear()
    content_repo._careers.clear()
    content_repo._careers_by_slug.clear()
    content_repo._problems.clear()


@pytest.fixture(autouse=True)
def reset_learner_lock() -> None:
    if hasattr(learner_lock, "reset"):
        learner_lock.reset()  # type: ignore[union-attr]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def events() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def content() -> InMemoryContentRepo:
    repo = InMemoryContentRepo()
    seed_catalog(repo)
    return repo


@pytest.fixture
def engine(
    events: InMemoryEventStore, content: InMemoryContentRepo, clock: FixedClock
) -> Engine:
    return build_engine(events, content, clock=clock)


@pytest.fixture
def client(clock: FixedClock) -> Iterator[TestClient]:
    seed_catalog(content_repo)
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        dependencies.grader = None


def mint_token(learner_id: str = "learner-1") -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=learner_id)


@pytest.fixture
def token() -> str:
    return mint_token()


@pytest.fixture
def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def make_course(course_id: str, slug: str, lessons: int, *, drafts: int = 0) -> Course:
    prefix = course_id.removeprefix("c-")
    published = [
        Lesson(id=f"{prefix}-{i}", course_id=course_id, position=i)
        for i in range(1, lessons + 1)
    ]
    draft = [
        Lesson(
            id=f"{prefix}-draft-{i}",
            course_id=course_id,
            position=lessons + i,
            status="draft",
        )
        for i in range(1, drafts + 1)
    ]
    return Course(
        id=course_id,
        slug=slug,
        title=slug.replace("-", " ").title(),
        lessons=tuple(published + draft),
    )


def seed_catalog(repo: InMemoryContentRepo) -> None:
    """Courses, one career and a problem of every flavour.

    python-basics (py-1..py-4), data-structures (ds-1..ds-4),
    web-apis (web-1..web-2 plus one draft), empty-course (no lessons).
    python-basics practises p-list and p-strict (p-draft is unpublished);
    data-structures practises p-elim.
    """
    repo.add_course(make_course("c-py", "python-basics", 4))
    repo.add_course(make_course("c-ds", "data-structures", 4))
    repo.add_course(make_course("c-web", "web-apis", 2, drafts=1))
    repo.add_course(make_course("c-empty", "empty-course", 0))

    repo.add_career(
        CareerPath(
            id="car-be",
            slug="backend-developer",
            name="Backend Developer",
            required_course_slugs=("python-basics", "data-structures", "web-apis"),
            skills=(
                CareerSkill(
                    career_id="car-be",
                    skill_name="Programming",
                    weight=60,
                    contributions=(
                        SkillContribution("car-be", "Programming", "python-basics", 50),
                        SkillContribution("car-be", "Programming", "data-structures", 50),
                    ),
                ),
                CareerSkill(
                    career_id="car-be",
                    skill_name="APIs",
                    weight=40,
                    contributions=(
                        SkillContribution("car-be", "APIs", "web-apis", 80),
                        SkillContribution("car-be", "APIs", "ghost-course", 20),
                    ),
                ),
            ),
        )
    )

    for problem in (
        Problem(
            id="p-list",
            slug="reverse-list",
            status="published",
            course_id="c-py",
            expected_output="[3, 2, 1]\n",
            match_mode="normalized",
            output_type="multi_line",
            reveal_penalty="half_xp",
            xp_value=10,
        ),
        Problem(
            id="p-strict",
            slug="strict-print",
            status="published",
            course_id="c-py",
            expected_output="hello world",
            match_mode="strict",
        ),
        Problem(
            id="p-json",
            slug="dict-dump",
            status="published",
            expected_output='{"a": 1, "b": [1, 2]}',
            output_type="json",
        ),
        Problem(
            id="p-after2",
            slug="tricky-loop",
            status="published",
            expected_output="42",
            reveal_timing="after_2",
            reveal_penalty="no_xp",
        ),
        Problem(
            id="p-viewed",
            slug="viewed-solution",
            status="published",
            expected_output="ok",
            reveal_penalty="viewed_solution",
        ),
        Problem(
            id="p-noreveal",
            slug="no-reveal",
            status="published",
            expected_output="x",
            reveal_allowed=False,
        ),
        Problem(id="p-draft", slug="draft-problem", expected_output="x", course_id="c-py"),
        Problem(
            id="p-elim",
            slug="eliminate-bugs",
            type="eliminate_wrong",
            status="published",
            course_id="c-ds",
            options=(
                ProblemOption("a", "uses a set", True),
                ProblemOption("b", "sorts first", True),
                ProblemOption("c", "mutates input", False),
                ProblemOption("d", "recursion", False),
            ),
            allow_partial_credit=True,
            xp_value=20,
        ),
        Problem(
            id="p-fix",
            slug="fix-off-by-one",
            type="fix_error",
            status="published",
            xp_value=30,
        ),
        Problem(
            id="p-quiet",
            slug="not-streak-eligible",
            status="published",
            expected_output="1",
            streak_eligible=False,
        ),
    ):
        repo.add_problem(problem)
