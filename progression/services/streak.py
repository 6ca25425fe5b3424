"""Streak Engine (C6).

The streak is always derived from time-tracking rows; the stored
current/max values are a cached summary rewritten on every recompute.

A day is active when its tracked seconds sum above zero or when it is
the learner's freeze day. Counting starts at today, or at yesterday if
today has no activity yet, and walks back until the first inactive day
(capped at MAX_STREAK_DAYS).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace

from progression.core.clock import Clock, DayKeyer, previous_day, shift_day
from progression.core.errors import AlreadyFrozenToday, InvalidInput, NoFreezesAvailable
from progression.core.metrics import STREAK_FREEZES, STREAK_RECOMPUTES
from progression.models.learner import StreakState
from progression.models.views import StreakSummary
from progression.repos.gateway import Gateway
from progression.services.course_progress import round_half_up
from progression.services.learner_lock import LearnerLock
from progression.services.weekly_activity import aggregate_daily_seconds

logger = logging.getLogger(__name__)

MAX_STREAK_DAYS = 365

STREAK_MILESTONES: tuple[int, ...] = (7, 14, 30, 60, 90, 180, 365)
# Past the last fixed milestone the target keeps moving this far ahead.
MILESTONE_STEP_AFTER_LAST = 30


def is_active(daily: Mapping[str, int], day: str, freeze_day: str | None) -> bool:
    return daily.get(day, 0) > 0 or freeze_day == day


def count_streak(daily: Mapping[str, int], today: str, freeze_day: str | None) -> int:
    cursor = today
    if not is_active(daily, cursor, freeze_day):
        cursor = previous_day(cursor)
    streak = 0
    while streak < MAX_STREAK_DAYS and is_active(daily, cursor, freeze_day):
        streak += 1
        cursor = previous_day(cursor)
    return streak


def next_milestone(streak: int) -> int:
    return next(
        (m for m in STREAK_MILESTONES if m > streak), streak + MILESTONE_STEP_AFTER_LAST
    )


def summarize(state: StreakState, today: str, today_active: bool) -> StreakSummary:
    target = next_milestone(state.current_streak)
    return StreakSummary(
        current=state.current_streak,
        max=state.max_streak,
        freezes_available=state.streak_freezes_available,
        freezes_used=state.streak_freezes_used,
        can_freeze_today=(
            state.streak_freezes_available > 0 and state.last_freeze_day != today
        ),
        today_active=today_active,
        last_freeze_day=state.last_freeze_day,
        last_activity_day=state.last_activity_day,
        next_milestone=target,
        milestone_progress=round_half_up(100 * state.current_streak / target),
    )


class StreakEngine:
    def __init__(
        self, gateway: Gateway, clock: Clock, keyer: DayKeyer, lock: LearnerLock
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._keyer = keyer
        self._lock = lock

    def today(self) -> str:
        return self._keyer.day_key(self._clock.now())

    async def recompute(self, learner_id: str, today: str | None = None) -> StreakSummary:
        day = today or self.today()
        async with self._lock.hold(learner_id):
            return await self._recompute_locked(learner_id, day)

    async def _recompute_locked(self, learner_id: str, today: str) -> StreakSummary:
        rows = await self._gateway.list_time(
            learner_id, shift_day(today, -MAX_STREAK_DAYS), today
        )
        daily = aggregate_daily_seconds(rows)
        before: list[StreakState] = []

        def apply(state: StreakState) -> StreakState:
            before.append(state)
            current = count_streak(daily, today, state.last_freeze_day)
            active_today = is_active(daily, today, state.last_freeze_day)
            return replace(
                state,
                current_streak=current,
                max_streak=max(state.max_streak, current),
                last_activity_day=today if active_today else state.last_activity_day,
            )

        state = await self._gateway.update_streak_state(learner_id, apply)
        summary = summarize(state, today, is_active(daily, today, state.last_freeze_day))
        STREAK_RECOMPUTES.labels(state=summary.state).inc()

        previous = before[-1].current_streak if before else None
        if previous != state.current_streak:
            logger.info(
                "Streak %s -> %d (max %d)",
                previous,
                state.current_streak,
                state.max_streak,
                extra={"learner_id": learner_id},
            )
        return summary

    async def consume_freeze(self, learner_id: str) -> StreakSummary:
        today = self.today()

        def take_freeze(state: StreakState) -> StreakState:
            if state.last_freeze_day == today:
                raise AlreadyFrozenToday("a freeze was already used today", day=today)
            if state.streak_freezes_available <= 0:
                raise NoFreezesAvailable("no streak freezes left")
            return replace(
                state,
                streak_freezes_available=state.streak_freezes_available - 1,
                streak_freezes_used=state.streak_freezes_used + 1,
                last_freeze_day=today,
            )

        async with self._lock.hold(learner_id):
            try:
                state = await self._gateway.update_streak_state(learner_id, take_freeze)
            except AlreadyFrozenToday:
                STREAK_FREEZES.labels(outcome="already_frozen").inc()
                raise
            except NoFreezesAvailable:
                STREAK_FREEZES.labels(outcome="none_available").inc()
                raise
            STREAK_FREEZES.labels(outcome="consumed").inc()
            logger.info(
                "Streak freeze consumed for %s (%d left)",
                today,
                state.streak_freezes_available,
                extra={"learner_id": learner_id},
            )
            return await self._recompute_locked(learner_id, today)

    async def record_time(
        self, learner_id: str, duration_seconds: int, lesson_id: str | None = None
    ) -> StreakSummary:
        if (
            isinstance(duration_seconds, bool)
            or not isinstance(duration_seconds, int)
            or duration_seconds <= 0
        ):
            raise InvalidInput(
                "duration_seconds must be a positive integer",
                duration_seconds=duration_seconds,
            )
        now = self._clock.now()
        today = self._keyer.day_key(now)
        await self._gateway.append_time(
            learner_id, today, duration_seconds, lesson_id, created_at=int(now.timestamp())
        )
        return await self.recompute(learner_id, today)
