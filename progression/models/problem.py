from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

ProblemType = Literal["predict_output", "eliminate_wrong", "fix_error"]
MatchMode = Literal["strict", "trim", "normalized"]
OutputType = Literal["single_line", "multi_line", "json"]
RevealTiming = Literal["anytime", "after_1", "after_2"]
RevealPenalty = Literal["no_xp", "half_xp", "viewed_solution"]

MATCH_MODES: frozenset[str] = frozenset({"strict", "trim", "normalized"})
OUTPUT_TYPES: frozenset[str] = frozenset({"single_line", "multi_line", "json"})

# Prior submissions required before the answer may be revealed.
REVEAL_TIMING_ATTEMPTS: dict[str, int] = {"anytime": 0, "after_1": 1, "after_2": 2}


@dataclass(frozen=True, slots=True)
class ProblemOption:
    """One candidate in an eliminate-wrong problem."""

    id: str
    content: str
    is_correct: bool
    explanation: str = ""


@dataclass(frozen=True, slots=True)
class Problem:
    id: str
    slug: str
    type: ProblemType = "predict_output"
    status: str = "draft"  # draft|published
    language: str = "python"
    expected_output: str = ""
    accepted_outputs: tuple[str, ...] = ()
    match_mode: MatchMode = "strict"
    output_type: OutputType = "single_line"
    reveal_allowed: bool = True
    reveal_timing: RevealTiming = "anytime"
    reveal_penalty: RevealPenalty = "no_xp"
    xp_value: int = 10
    streak_eligible: bool = True
    options: tuple[ProblemOption, ...] = ()
    allow_partial_credit: bool = False
    course_id: str | None = None  # course whose practice set lists this problem

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def correct_option_ids(self) -> frozenset[str]:
        return frozenset(o.id for o in self.options if o.is_correct)


@dataclass(frozen=True, slots=True)
class ProblemAttempt:
    """Immutable once written; attempts are only ever appended."""

    id: UUID
    learner_id: str
    problem_id: str
    attempt_index: int
    submitted_output: str
    selected_options: tuple[str, ...]
    match_mode: str
    is_correct: bool
    score: float
    xp_awarded: int
    submitted_at: int  # unix seconds
    revealed: bool = False
    solution_viewed: bool = False

    @staticmethod
    def new(
        *,
        learner_id: str,
        problem_id: str,
        attempt_index: int,
        submitted_output: str,
        selected_options: tuple[str, ...],
        match_mode: str,
        is_correct: bool,
        score: float,
        xp_awarded: int,
        submitted_at: int,
        revealed: bool = False,
        solution_viewed: bool = False,
    ) -> ProblemAttempt:
        return ProblemAttempt(
            id=uuid4(),
            learner_id=learner_id,
            problem_id=problem_id,
            attempt_index=attempt_index,
            submitted_output=submitted_output,
            selected_options=selected_options,
            match_mode=match_mode,
            is_correct=is_correct,
            score=score,
            xp_awarded=xp_awarded,
            submitted_at=submitted_at,
            revealed=revealed,
            solution_viewed=solution_viewed,
        )
