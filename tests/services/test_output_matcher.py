from __future__ import annotations

import pytest

from progression.core.errors import InvalidInput, InvalidOutputType
from progression.services.output_matcher import json_equal, line_diff, match_output


@pytest.mark.parametrize(
    ("mode", "accepted"),
    [("strict", False), ("trim", True), ("normalized", True)],
)
def test_outer_whitespace(mode: str, accepted: bool) -> None:
    ok, _ = match_output("  hello world \n", "hello world", match_mode=mode)
    assert ok is accepted


@pytest.mark.parametrize(
    ("mode", "accepted"),
    [("strict", False), ("trim", False), ("normalized", True)],
)
def test_internal_whitespace_and_blank_lines(mode: str, accepted: bool) -> None:
    ok, _ = match_output("a   b\n\n\nc\td", "a b\nc d", match_mode=mode, output_type="multi_line")
    assert ok is accepted


def test_trim_strips_every_line() -> None:
    ok, _ = match_output("  1  \n   2\n", "1\n2", match_mode="trim", output_type="multi_line")
    assert ok is True


def test_strict_requires_exact_text() -> None:
    assert match_output("hello world", "hello world")[0] is True
    assert match_output("hello world\n", "hello world")[0] is False


def test_accepted_alternative_is_reported() -> None:
    ok, matched = match_output("True", "true", accepted=("True", "1"))
    assert ok is True
    assert matched == "True"


def test_miss_reports_primary_answer() -> None:
    ok, matched = match_output("nope", "true", accepted=("True",))
    assert ok is False
    assert matched == "true"


def test_json_ignores_key_order_and_spacing() -> None:
    ok, _ = match_output('{"b":[1,2],  "a":1}', '{"a": 1, "b": [1, 2]}', output_type="json")
    assert ok is True


def test_json_keeps_array_order() -> None:
    ok, _ = match_output('{"a": 1, "b": [2, 1]}', '{"a": 1, "b": [1, 2]}', output_type="json")
    assert ok is False


def test_json_ignores_match_mode() -> None:
    ok, _ = match_output(' [1,2] ', "[1, 2]", match_mode="strict", output_type="json")
    assert ok is True


def test_unparseable_submission_is_incorrect() -> None:
    assert match_output("{oops", "{}", output_type="json") == (False, "{}")


def test_nan_is_not_json() -> None:
    assert match_output("NaN", "1", output_type="json")[0] is False


def test_unparseable_authored_json_is_invalid_input() -> None:
    with pytest.raises(InvalidInput):
        match_output("{}", "{broken", output_type="json")


def test_unknown_output_type() -> None:
    with pytest.raises(InvalidOutputType):
        match_output("x", "x", output_type="xml")


def test_unknown_match_mode() -> None:
    with pytest.raises(InvalidInput):
        match_output("x", "x", match_mode="fuzzy")


def test_json_equal_does_not_conflate_bools_and_numbers() -> None:
    assert json_equal(True, 1) is False
    assert json_equal(1, 1.0) is True
    assert json_equal({"a": [True]}, {"a": [True]}) is True
    assert json_equal(None, None) is True
    assert json_equal("1", 1) is False


def test_line_diff() -> None:
    assert line_diff("a\nb\nc", "a\nx\nc") == (1,)
    assert line_diff("a  \nb", "a\nb") == ()
    assert line_diff("a", "a\nb\nc") == (1, 2)
