from __future__ import annotations

from fastapi import APIRouter

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import StreakOut

router = APIRouter(prefix="/v1/streak", tags=["streak"])


@router.get("", response_model=StreakOut)
async def get_streak(learner_id: LearnerId, engine: EngineDep) -> StreakOut:
    """Every read recomputes; the stored summary is only a cache."""
    summary = await engine.streak.recompute(learner_id)
    return StreakOut.model_validate(summary)


@router.post("/freeze", response_model=StreakOut)
async def consume_freeze(learner_id: LearnerId, engine: EngineDep) -> StreakOut:
    summary = await engine.streak.consume_freeze(learner_id)
    return StreakOut.model_validate(summary)
