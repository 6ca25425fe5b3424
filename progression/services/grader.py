"""Client for the external grader that checks fix-error submissions.

The engine runs no learner code itself. It posts the submission to
GRADER_URL/grade and reads back ``{"passed": bool, "score": float}``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from progression.core.errors import GraderUnavailable

logger = logging.getLogger(__name__)

GRADER_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class GradeResult:
    passed: bool
    score: float


class GraderClient(Protocol):
    async def grade(self, problem_id: str, language: str, code: str) -> GradeResult: ...


class HttpGraderClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = GRADER_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def grade(self, problem_id: str, language: str, code: str) -> GradeResult:
        payload = {"problem_id": problem_id, "language": language, "code": code}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(f"{self._base_url}/grade", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.error(
                "Grader request failed: %s", exc, extra={"problem_id": problem_id}
            )
            raise GraderUnavailable("grader request failed", problem_id=problem_id) from exc
        except ValueError as exc:
            raise GraderUnavailable("grader returned invalid JSON") from exc

        if not isinstance(data, dict) or "passed" not in data:
            raise GraderUnavailable("grader response missing 'passed'")
        passed = bool(data["passed"])
        score = float(data.get("score", 1.0 if passed else 0.0))
        return GradeResult(passed=passed, score=min(max(score, 0.0), 1.0))
