"""Practice problem submission, answer reveal and per-problem progress."""

from __future__ import annotations

from fastapi import APIRouter

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import (
    AttemptResultOut,
    ProblemProgressOut,
    RevealOut,
    SubmissionIn,
)

router = APIRouter(prefix="/v1/problems", tags=["problems"])


@router.post("/{problem_id}/submit", response_model=AttemptResultOut)
async def submit(
    problem_id: str, payload: SubmissionIn, learner_id: LearnerId, engine: EngineDep
) -> AttemptResultOut:
    result = await engine.problems.submit(
        learner_id,
        problem_id,
        output=payload.output,
        selected_options=tuple(payload.selected_options),
        code=payload.code,
        time_taken_seconds=payload.time_taken_seconds,
    )
    return AttemptResultOut.model_validate(result)


@router.post("/{problem_id}/reveal", response_model=RevealOut)
async def reveal(problem_id: str, learner_id: LearnerId, engine: EngineDep) -> RevealOut:
    result = await engine.problems.reveal(learner_id, problem_id)
    return RevealOut.model_validate(result)


@router.get("/progress", response_model=list[ProblemProgressOut])
async def list_progress(learner_id: LearnerId, engine: EngineDep) -> list[ProblemProgressOut]:
    progress = await engine.problems.progress_all(learner_id)
    return [ProblemProgressOut.model_validate(p) for p in progress]


@router.get("/{problem_id}/progress", response_model=ProblemProgressOut)
async def get_progress(
    problem_id: str, learner_id: LearnerId, engine: EngineDep
) -> ProblemProgressOut:
    progress = await engine.problems.progress(learner_id, problem_id)
    return ProblemProgressOut.model_validate(progress)
