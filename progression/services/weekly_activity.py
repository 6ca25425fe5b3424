"""Weekly Activity Aggregator (C7).

Weeks run Sunday to Saturday in the reference zone. One list_time read
covers the anchor week and the week before it.
"""

from __future__ import annotations

from collections.abc import Iterable

from progression.core.clock import Clock, DayKeyer, day_range, shift_day, week_bounds
from progression.models.views import WeeklyActivity
from progression.repos.gateway import Gateway
from progression.services.course_progress import round_half_up


def aggregate_daily_seconds(rows: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Sum tracked seconds per day-key. Days without rows are absent."""
    daily: dict[str, int] = {}
    for day, seconds in rows:
        daily[day] = daily.get(day, 0) + seconds
    return daily


def project_week(daily: dict[str, int], anchor_day: str) -> WeeklyActivity:
    week_start, week_end = week_bounds(anchor_day)
    days = {day: daily.get(day, 0) for day in day_range(week_start, week_end)}
    total = sum(days.values())
    active_days = sum(1 for seconds in days.values() if seconds > 0)
    average = round_half_up(total / 60 / active_days) if active_days else 0

    last_start, last_end = shift_day(week_start, -7), shift_day(week_start, -1)
    last_week = sum(daily.get(day, 0) for day in day_range(last_start, last_end))

    return WeeklyActivity(
        week_start=week_start,
        week_end=week_end,
        daily_seconds=days,
        total_seconds=total,
        active_days=active_days,
        average_minutes_per_active_day=average,
        last_week_seconds=last_week,
    )


class WeeklyActivityAggregator:
    def __init__(self, gateway: Gateway, clock: Clock, keyer: DayKeyer) -> None:
        self._gateway = gateway
        self._clock = clock
        self._keyer = keyer

    async def week(self, learner_id: str, anchor_day: str | None = None) -> WeeklyActivity:
        anchor = anchor_day or self._keyer.day_key(self._clock.now())
        week_start, week_end = week_bounds(anchor)
        rows = await self._gateway.list_time(learner_id, shift_day(week_start, -7), week_end)
        return project_week(aggregate_daily_seconds(rows), anchor)
