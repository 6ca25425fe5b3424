"""Error kinds raised by the progression engine.

Each class carries a stable `code`. The HTTP layer maps codes to status
codes (see progression.api.errors); engine code only raises.
"""

from __future__ import annotations


class EngineError(Exception):
    code = "engine_error"

    def __init__(self, message: str = "", **context: object) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.context = context


class StorageUnavailable(EngineError):
    """The gateway could not serve the request. Callers may retry."""

    code = "storage_unavailable"


class GatewayTimeout(StorageUnavailable):
    code = "timeout"


class GraderUnavailable(StorageUnavailable):
    code = "grader_unavailable"


class NotFound(EngineError):
    code = "not_found"


class AlreadyFrozenToday(EngineError):
    code = "already_frozen_today"


class NoFreezesAvailable(EngineError):
    code = "no_freezes_available"


class ProblemNotPublished(EngineError):
    code = "problem_not_published"


class RevealNotAllowed(EngineError):
    code = "reveal_not_allowed"


class RevealNotYetAllowed(EngineError):
    code = "reveal_not_yet_allowed"


class InvalidInput(EngineError):
    code = "invalid_input"


class InvalidOutputType(InvalidInput):
    code = "invalid_output_type"
