"""Composition of the engine's projectors over one gateway.

The API builds one Engine per request (the gateway may wrap a
request-scoped database session); tests build one per scenario with a
FixedClock.
"""

from __future__ import annotations

from dataclasses import dataclass

from progression.core.clock import Clock, DayKeyer, SystemClock
from progression.repos.content_repo import ContentRepo
from progression.repos.event_store import EventStore
from progression.repos.gateway import DEFAULT_TIMEOUT_SECONDS, Gateway
from progression.services.course_progress import CourseProgressProjector
from progression.services.dashboard import DashboardAssembler
from progression.services.grader import GraderClient
from progression.services.learner_lock import InMemoryLearnerLock, LearnerLock
from progression.services.problem_evaluator import ProblemEvaluator
from progression.services.readiness import CareerReadinessProjector
from progression.services.skills import SkillProficiencyProjector
from progression.services.streak import StreakEngine
from progression.services.weekly_activity import WeeklyActivityAggregator


@dataclass(frozen=True)
class Engine:
    gateway: Gateway
    clock: Clock
    keyer: DayKeyer
    progress: CourseProgressProjector
    skills: SkillProficiencyProjector
    readiness: CareerReadinessProjector
    streak: StreakEngine
    weekly: WeeklyActivityAggregator
    problems: ProblemEvaluator
    dashboard: DashboardAssembler


def build_engine(
    events: EventStore,
    content: ContentRepo,
    *,
    clock: Clock | None = None,
    zone: str = "UTC",
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    lock: LearnerLock | None = None,
    grader: GraderClient | None = None,
) -> Engine:
    clock = clock or SystemClock()
    keyer = DayKeyer(zone)
    lock = lock or InMemoryLearnerLock()
    gateway = Gateway(events, content, timeout_seconds=timeout_seconds)
    progress = CourseProgressProjector(gateway, clock)
    streak = StreakEngine(gateway, clock, keyer, lock)
    weekly = WeeklyActivityAggregator(gateway, clock, keyer)
    return Engine(
        gateway=gateway,
        clock=clock,
        keyer=keyer,
        progress=progress,
        skills=SkillProficiencyProjector(gateway, progress),
        readiness=CareerReadinessProjector(gateway, progress),
        streak=streak,
        weekly=weekly,
        problems=ProblemEvaluator(gateway, clock, streak, lock, grader),
        dashboard=DashboardAssembler(gateway, clock, keyer, streak, weekly),
    )
