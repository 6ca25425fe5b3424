from __future__ import annotations

from fastapi import APIRouter

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import CareerOut, CareerSelectIn, ReadinessOut

router = APIRouter(prefix="/v1/career", tags=["career"])


@router.put("", response_model=CareerOut)
async def select_career(
    payload: CareerSelectIn, learner_id: LearnerId, engine: EngineDep
) -> CareerOut:
    career = await engine.readiness.select_career(learner_id, payload.career_slug)
    return CareerOut.model_validate(career)


@router.get("/readiness", response_model=ReadinessOut)
async def get_readiness(learner_id: LearnerId, engine: EngineDep) -> ReadinessOut:
    readiness = await engine.readiness.readiness_for_selected(learner_id)
    return ReadinessOut.model_validate(readiness)
