from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace

from progression.core.errors import InvalidInput

DEFAULT_STREAK_FREEZES = 2


@dataclass(frozen=True, slots=True)
class StreakState:
    """The one mutable per-learner record the engine owns.

    Stored on the learner's profile; every field is rewritten as a unit.
    """

    current_streak: int = 0
    max_streak: int = 0
    streak_freezes_available: int = DEFAULT_STREAK_FREEZES
    streak_freezes_used: int = 0
    last_freeze_day: str | None = None
    last_activity_day: str | None = None

    def merged(self, patch: Mapping[str, object]) -> StreakState:
        """Apply a partial update, rejecting unknown fields and broken invariants."""
        unknown = set(patch) - STREAK_FIELDS
        if unknown:
            raise InvalidInput(f"unknown streak fields: {sorted(unknown)}")
        updated = replace(self, **patch)  # type: ignore[arg-type]
        updated.check()
        return updated

    def check(self) -> None:
        if self.current_streak < 0 or self.max_streak < self.current_streak:
            raise InvalidInput(
                "max_streak must be >= current_streak >= 0",
                current_streak=self.current_streak,
                max_streak=self.max_streak,
            )
        if self.streak_freezes_available < 0:
            raise InvalidInput("streak_freezes_available must be >= 0")


STREAK_FIELDS = frozenset(f.name for f in fields(StreakState))


@dataclass(frozen=True, slots=True)
class Learner:
    id: str
    display_name: str = ""
    avatar_url: str | None = None
    selected_career: str | None = None  # career slug
    streak: StreakState = field(default_factory=StreakState)


@dataclass(frozen=True, slots=True)
class Enrollment:
    learner_id: str
    course_id: str
    enrolled_at: int  # unix seconds
