from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class TimeTrackingRecord:
    """Append-only: several records per learner and day are summed on read."""

    id: UUID
    learner_id: str
    tracked_day: str
    duration_seconds: int
    lesson_id: str | None = None
    created_at: int | None = None

    @staticmethod
    def new(
        *,
        learner_id: str,
        tracked_day: str,
        duration_seconds: int,
        lesson_id: str | None = None,
        created_at: int | None = None,
    ) -> TimeTrackingRecord:
        return TimeTrackingRecord(
            id=uuid4(),
            learner_id=learner_id,
            tracked_day=tracked_day,
            duration_seconds=duration_seconds,
            lesson_id=lesson_id,
            created_at=created_at,
        )
