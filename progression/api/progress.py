"""Lesson views and completion, course progress, reset and enrollment."""

from __future__ import annotations

from fastapi import APIRouter, status

from progression.api.dependencies import EngineDep, LearnerId
from progression.api.schemas import CourseProgressOut, EnrollmentOut

router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post("/lessons/{lesson_id}/complete", response_model=CourseProgressOut)
async def complete_lesson(
    lesson_id: str, learner_id: LearnerId, engine: EngineDep
) -> CourseProgressOut:
    """Idempotent: completing a lesson twice leaves one completion row."""
    progress = await engine.progress.complete_lesson(learner_id, lesson_id)
    return CourseProgressOut.model_validate(progress)


@router.delete("/lessons/{lesson_id}/complete", response_model=CourseProgressOut)
async def uncomplete_lesson(
    lesson_id: str, learner_id: LearnerId, engine: EngineDep
) -> CourseProgressOut:
    """The lesson stays viewed; only its completion is taken back."""
    progress = await engine.progress.complete_lesson(learner_id, lesson_id, completed=False)
    return CourseProgressOut.model_validate(progress)


@router.post("/lessons/{lesson_id}/view", response_model=CourseProgressOut)
async def view_lesson(
    lesson_id: str, learner_id: LearnerId, engine: EngineDep
) -> CourseProgressOut:
    progress = await engine.progress.view_lesson(learner_id, lesson_id)
    return CourseProgressOut.model_validate(progress)


@router.get("/courses/{course_id}", response_model=CourseProgressOut)
async def get_course_progress(
    course_id: str, learner_id: LearnerId, engine: EngineDep
) -> CourseProgressOut:
    progress = await engine.progress.progress(learner_id, course_id)
    return CourseProgressOut.model_validate(progress)


@router.delete("/courses/{course_id}", response_model=CourseProgressOut)
async def reset_course(
    course_id: str, learner_id: LearnerId, engine: EngineDep
) -> CourseProgressOut:
    progress = await engine.progress.reset_course(learner_id, course_id)
    return CourseProgressOut.model_validate(progress)


@router.post(
    "/courses/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_200_OK,
)
async def enroll(course_id: str, learner_id: LearnerId, engine: EngineDep) -> EnrollmentOut:
    created = await engine.progress.enroll(learner_id, course_id)
    return EnrollmentOut(course_id=course_id, enrolled=created)
