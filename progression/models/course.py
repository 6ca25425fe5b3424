from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Lesson:
    id: str
    course_id: str
    position: int
    status: str = "published"  # draft|published

    @property
    def is_published(self) -> bool:
        return self.status == "published"


@dataclass(frozen=True, slots=True)
class Course:
    """Authored content; read-only to the engine."""

    id: str
    slug: str
    title: str
    lessons: tuple[Lesson, ...] = ()
    learning_hours: float | None = None

    @property
    def published_lessons(self) -> tuple[Lesson, ...]:
        return tuple(
            sorted(
                (lesson for lesson in self.lessons if lesson.is_published),
                key=lambda lesson: lesson.position,
            )
        )


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    learner_id: str
    lesson_id: str
    course_id: str  # denormalized at completion time
    completed: bool = True
    updated_at: int | None = None  # unix seconds
