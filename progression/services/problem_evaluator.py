"""Problem Attempt Evaluator (C8).

Scores a submission, decides XP from the learner's attempt history and
appends the attempt. Attempts are never rewritten: "already solved" and
"answer revealed" are read back from history on every submission.

XP rules:
  - only the first correct (non-reveal) attempt earns XP
  - after a reveal, that XP is reduced by the problem's reveal_penalty

The history read, the XP decision and the append run under the
per-learner lock, so a double submit cannot pay out twice or reuse an
attempt index.
"""

from __future__ import annotations

import logging

from progression.core.clock import Clock
from progression.core.errors import (
    GraderUnavailable,
    InvalidInput,
    NotFound,
    ProblemNotPublished,
    RevealNotAllowed,
    RevealNotYetAllowed,
)
from progression.core.metrics import PROBLEM_ATTEMPTS, XP_AWARDED
from progression.models.problem import REVEAL_TIMING_ATTEMPTS, Problem, ProblemAttempt
from progression.models.views import AttemptResult, ProblemProgress, RevealResult
from progression.repos.gateway import Gateway
from progression.services.grader import GraderClient
from progression.services.learner_lock import LearnerLock
from progression.services.output_matcher import line_diff, match_output
from progression.services.streak import StreakEngine

logger = logging.getLogger(__name__)


def xp_for_attempt(
    problem: Problem, is_correct: bool, history: list[ProblemAttempt]
) -> int:
    if not is_correct:
        return 0
    if any(a.is_correct and not a.revealed for a in history):
        return 0
    if not any(a.revealed for a in history):
        return problem.xp_value
    if problem.reveal_penalty == "half_xp":
        return problem.xp_value // 2
    # no_xp and viewed_solution both forfeit the reward
    return 0


def score_elimination(problem: Problem, selected: tuple[str, ...]) -> tuple[bool, float]:
    if not selected:
        raise InvalidInput("select at least one option", problem_id=problem.id)
    known = {o.id for o in problem.options}
    unknown = [option_id for option_id in selected if option_id not in known]
    if unknown:
        raise InvalidInput(f"unknown options: {unknown}", problem_id=problem.id)

    chosen = set(selected)
    correct = problem.correct_option_ids
    if chosen == correct:
        return True, 1.0
    if not problem.allow_partial_credit or not correct:
        return False, 0.0
    right = len(chosen & correct)
    wrong = len(chosen - correct)
    return False, max(0.0, (right - wrong) / len(correct))


def problem_progress(problem_id: str, history: list[ProblemAttempt]) -> ProblemProgress:
    submissions = [a for a in history if not a.revealed]
    first_correct = next((a for a in submissions if a.is_correct), None)
    if first_correct is not None:
        status = "solved"
    elif submissions:
        status = "attempted"
    else:
        status = "unsolved"
    return ProblemProgress(
        problem_id=problem_id,
        status=status,
        attempts=len(submissions),
        solved_at=first_correct.submitted_at if first_correct else None,
        xp_earned=sum(a.xp_awarded for a in history),
    )


class ProblemEvaluator:
    def __init__(
        self,
        gateway: Gateway,
        clock: Clock,
        streak: StreakEngine,
        lock: LearnerLock,
        grader: GraderClient | None = None,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._streak = streak
        self._lock = lock
        self._grader = grader

    async def _published_problem(self, problem_id: str) -> Problem:
        problem = await self._gateway.get_problem(problem_id)
        if problem is None:
            raise NotFound("problem not found", problem_id=problem_id)
        if not problem.is_published:
            raise ProblemNotPublished("problem is not published", problem_id=problem_id)
        return problem

    async def submit(
        self,
        learner_id: str,
        problem_id: str,
        *,
        output: str = "",
        selected_options: tuple[str, ...] = (),
        code: str | None = None,
        time_taken_seconds: int | None = None,
    ) -> AttemptResult:
        problem = await self._published_problem(problem_id)
        matched_against: str | None = None
        mismatched: tuple[int, ...] = ()
        submitted_text = output
        selected = tuple(dict.fromkeys(selected_options))

        if problem.type == "predict_output":
            if not problem.expected_output:
                logger.warning(
                    "Published problem has no expected output",
                    extra={"problem_id": problem_id, "warning_kind": "missing_expected_output"},
                )
                raise InvalidInput("problem has no expected output", problem_id=problem_id)
            is_correct, matched_against = match_output(
                output,
                problem.expected_output,
                problem.accepted_outputs,
                problem.match_mode,
                problem.output_type,
            )
            score = 1.0 if is_correct else 0.0
            if not is_correct:
                mismatched = line_diff(output, problem.expected_output)
        elif problem.type == "eliminate_wrong":
            is_correct, score = score_elimination(problem, selected)
        elif problem.type == "fix_error":
            if self._grader is None:
                raise GraderUnavailable("no grader configured", problem_id=problem_id)
            if not code:
                raise InvalidInput("code is required", problem_id=problem_id)
            graded = await self._grader.grade(problem.id, problem.language, code)
            is_correct, score = graded.passed, graded.score
            submitted_text = code
        else:
            raise InvalidInput(f"unsupported problem type {problem.type!r}")

        async with self._lock.hold(learner_id):
            await self._gateway.lock_learner(learner_id)
            history = await self._gateway.list_attempts(learner_id, problem_id)
            xp = xp_for_attempt(problem, is_correct, history)
            revealed_before = any(a.revealed for a in history)

            attempt = ProblemAttempt.new(
                learner_id=learner_id,
                problem_id=problem_id,
                attempt_index=len(history) + 1,
                submitted_output=submitted_text,
                selected_options=selected,
                match_mode=problem.match_mode,
                is_correct=is_correct,
                score=score,
                xp_awarded=xp,
                submitted_at=int(self._clock.now().timestamp()),
                solution_viewed=revealed_before and problem.reveal_penalty == "viewed_solution",
            )
            await self._gateway.record_problem_attempt(attempt)

        PROBLEM_ATTEMPTS.labels(
            problem_type=problem.type, result="correct" if is_correct else "incorrect"
        ).inc()
        if xp:
            XP_AWARDED.labels(problem_type=problem.type).inc(xp)
        logger.info(
            "Attempt %d on %s: correct=%s xp=%d",
            attempt.attempt_index,
            problem.slug,
            is_correct,
            xp,
            extra={"learner_id": learner_id, "problem_id": problem_id},
        )

        # The streak engine takes the learner lock itself.
        if problem.streak_eligible:
            seconds = max(1, int(time_taken_seconds or 0))
            await self._streak.record_time(learner_id, seconds)

        return AttemptResult(
            attempt=attempt, matched_against=matched_against, mismatched_lines=mismatched
        )

    async def reveal(self, learner_id: str, problem_id: str) -> RevealResult:
        problem = await self._published_problem(problem_id)
        if not problem.reveal_allowed:
            raise RevealNotAllowed("answer reveal is disabled", problem_id=problem_id)

        async with self._lock.hold(learner_id):
            await self._gateway.lock_learner(learner_id)
            history = await self._gateway.list_attempts(learner_id, problem_id)
            existing = next((a for a in history if a.revealed), None)
            if existing is not None:
                return _reveal_result(problem, existing)

            required = REVEAL_TIMING_ATTEMPTS.get(problem.reveal_timing, 0)
            prior = sum(1 for a in history if not a.revealed)
            if prior < required:
                raise RevealNotYetAllowed(
                    f"reveal needs {required} attempts first ({prior} so far)",
                    problem_id=problem_id,
                )

            attempt = ProblemAttempt.new(
                learner_id=learner_id,
                problem_id=problem_id,
                attempt_index=len(history) + 1,
                submitted_output="",
                selected_options=(),
                match_mode=problem.match_mode,
                is_correct=False,
                score=0.0,
                xp_awarded=0,
                submitted_at=int(self._clock.now().timestamp()),
                revealed=True,
                solution_viewed=problem.reveal_penalty == "viewed_solution",
            )
            await self._gateway.record_problem_attempt(attempt)

        PROBLEM_ATTEMPTS.labels(problem_type=problem.type, result="revealed").inc()
        logger.info(
            "Answer revealed for %s",
            problem.slug,
            extra={"learner_id": learner_id, "problem_id": problem_id},
        )
        return _reveal_result(problem, attempt)

    async def progress(self, learner_id: str, problem_id: str) -> ProblemProgress:
        await self._published_problem(problem_id)
        history = await self._gateway.list_attempts(learner_id, problem_id)
        return problem_progress(problem_id, history)

    async def progress_all(self, learner_id: str) -> list[ProblemProgress]:
        """Every published problem, unsolved ones included, ordered by slug."""
        problems = sorted(
            (p for p in await self._gateway.list_problems() if p.is_published),
            key=lambda p: p.slug,
        )
        by_problem: dict[str, list[ProblemAttempt]] = {}
        for attempt in await self._gateway.list_learner_attempts(learner_id):
            by_problem.setdefault(attempt.problem_id, []).append(attempt)
        return [problem_progress(p.id, by_problem.get(p.id, [])) for p in problems]


def _reveal_result(problem: Problem, attempt: ProblemAttempt) -> RevealResult:
    return RevealResult(
        problem_id=problem.id,
        expected_output=problem.expected_output,
        accepted_outputs=problem.accepted_outputs,
        correct_options=tuple(sorted(problem.correct_option_ids)),
        attempt=attempt,
    )
