from __future__ import annotations

from fastapi import APIRouter

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import DashboardOut

router = APIRouter(prefix="/v1", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
async def get_dashboard(learner_id: LearnerId, engine: EngineDep) -> DashboardOut:
    dashboard = await engine.dashboard.assemble(learner_id)
    return DashboardOut.model_validate(dashboard)
