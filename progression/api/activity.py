from __future__ import annotations

from fastapi import APIRouter, Query, status

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import StreakOut, TimeIn, WeekOut
from progression.core.clock import parse_day_key

router = APIRouter(prefix="/v1/activity", tags=["activity"])


@router.post("/time", response_model=StreakOut, status_code=status.HTTP_201_CREATED)
async def track_time(payload: TimeIn, learner_id: LearnerId, engine: EngineDep) -> StreakOut:
    """Append one time record for today and return the recomputed streak."""
    summary = await engine.streak.record_time(
        learner_id, payload.duration_seconds, payload.lesson_id
    )
    return StreakOut.model_validate(summary)


@router.get("/week", response_model=WeekOut)
async def get_week(
    learner_id: LearnerId,
    engine: EngineDep,
    anchor: str | None = Query(default=None, description="Any day-key in the week"),
) -> WeekOut:
    if anchor is not None:
        parse_day_key(anchor)
    week = await engine.weekly.week(learner_id, anchor)
    return WeekOut.model_validate(week)
