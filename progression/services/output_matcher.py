"""Comparison of a learner's predicted output against authored answers.

Text outputs are normalized according to the problem's match mode and
compared for equality; JSON outputs are parsed and compared structurally,
whatever the match mode says.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from progression.core.errors import InvalidInput, InvalidOutputType
from progression.models.problem import MATCH_MODES, OUTPUT_TYPES


def _trim(text: str) -> str:
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def _normalize(text: str) -> str:
    lines = (" ".join(line.split()) for line in text.split("\n"))
    return "\n".join(line for line in lines if line).strip()


_NORMALIZERS = {
    "strict": lambda text: text,
    "trim": _trim,
    "normalized": _normalize,
}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_json(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def json_equal(a: Any, b: Any) -> bool:
    """Structural equality: object key order ignored, array order kept.

    Booleans never equal numbers, while 1 and 1.0 do.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def match_output(
    submitted: str,
    expected: str,
    accepted: Sequence[str] = (),
    match_mode: str = "strict",
    output_type: str = "single_line",
) -> tuple[bool, str]:
    """Return (is_correct, matched_against).

    matched_against is the authored answer that matched, or the primary
    expected output when nothing did.
    """
    if output_type not in OUTPUT_TYPES:
        raise InvalidOutputType(f"unknown output type {output_type!r}")
    candidates = [expected, *accepted]

    if output_type == "json":
        parsed_candidates = []
        for candidate in candidates:
            try:
                parsed_candidates.append(_parse_json(candidate))
            except ValueError:
                raise InvalidInput(
                    "authored answer is not valid JSON", answer=candidate
                ) from None
        try:
            parsed = _parse_json(submitted)
        except ValueError:
            return False, expected
        for candidate, value in zip(candidates, parsed_candidates):
            if json_equal(parsed, value):
                return True, candidate
        return False, expected

    if match_mode not in MATCH_MODES:
        raise InvalidInput(f"unknown match mode {match_mode!r}")
    normalize = _NORMALIZERS[match_mode]
    normalized = normalize(submitted)
    for candidate in candidates:
        if normalized == normalize(candidate):
            return True, candidate
    return False, expected


def line_diff(submitted: str, expected: str) -> tuple[int, ...]:
    """Indices of lines that differ, ignoring trailing whitespace."""
    ours = submitted.split("\n")
    theirs = expected.split("\n")
    return tuple(
        i
        for i in range(max(len(ours), len(theirs)))
        if (ours[i] if i < len(ours) else "").rstrip()
        != (theirs[i] if i < len(theirs) else "").rstrip()
    )
