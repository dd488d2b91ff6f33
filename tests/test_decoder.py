from __future__ import annotations

import pytest

from treestream.decoder import SkipReason, decode_patch_line, inspect_patch_line
from treestream.structured import Patch


def test_decodes_plain_record() -> None:
    patch = decode_patch_line('{"op":"set","path":"/root","value":"r"}')

    assert patch == Patch(op="set", path="/root", value="r")


def test_remove_record_has_no_value() -> None:
    patch = decode_patch_line('{"op":"remove","path":"/elements/x"}')

    assert patch is not None
    assert patch.is_remove
    assert patch.value is None


@pytest.mark.parametrize(
    ("line", "reason"),
    [
        ("", SkipReason.EMPTY),
        ("   \t ", SkipReason.EMPTY),
        ("```json", SkipReason.FENCE),
        ("```", SkipReason.FENCE),
        ("// comment", SkipReason.COMMENT),
        ("  // indented comment {\"op\":\"set\",\"path\":\"/root\",\"value\":\"x\"}", SkipReason.COMMENT),
        ("data:", SkipReason.EMPTY),
        ("not json at all", SkipReason.INVALID_JSON),
        ('{"op":"set","path":"/root","value":', SkipReason.INVALID_JSON),
        ("[1, 2, 3]", SkipReason.NOT_A_PATCH),
        ('{"path":"/root","value":"x"}', SkipReason.NOT_A_PATCH),
        ('{"op":"set","path":5}', SkipReason.NOT_A_PATCH),
    ],
)
def test_lines_without_patch_report_reason(line: str, reason: SkipReason) -> None:
    decoded = inspect_patch_line(line)

    assert decoded.patch is None
    assert decoded.reason is reason
    assert decode_patch_line(line) is None


def test_strips_data_prefix_and_surrounding_whitespace() -> None:
    patch = decode_patch_line('  data: {"op":"add","path":"/elements/a","value":{"type":"Text"}}  ')

    assert patch == Patch(op="add", path="/elements/a", value={"type": "Text"})


def test_strips_trailing_commas() -> None:
    patch = decode_patch_line('{"op":"set","path":"/root","value":"r"},,  ')

    assert patch is not None
    assert patch.value == "r"


def test_falls_back_to_outer_braces_when_noise_surrounds_record() -> None:
    patch = decode_patch_line('patch -> {"op":"set","path":"/root","value":"r"} <- done')

    assert patch == Patch(op="set", path="/root", value="r")


def test_nested_braces_survive_fallback() -> None:
    line = 'noise {"op":"add","path":"/elements/a","value":{"props":{"n":1}}} trailing'

    patch = decode_patch_line(line)

    assert patch is not None
    assert patch.value == {"props": {"n": 1}}


def test_rejects_non_standard_constants() -> None:
    assert decode_patch_line('{"op":"set","path":"/elements/a/props/n","value":NaN}') is None


def test_unknown_op_still_decodes() -> None:
    patch = decode_patch_line('{"op":"move","path":"/elements/a","from":"/elements/b"}')

    assert patch is not None
    assert patch.op == "move"
    assert not patch.is_write
    assert not patch.is_remove


def test_custom_prefixes() -> None:
    line = 'event: {"op":"set","path":"/root","value":"r"}'

    assert decode_patch_line("# note", comment_prefixes=("#",)) is None
    assert decode_patch_line(line, data_prefix="event:") == Patch(op="set", path="/root", value="r")


@pytest.mark.parametrize(
    "line",
    [
        "[" * 100_000,
        '{"a":' * 100_000 + "1" + "}" * 100_000,
        'noise {"op":"set","path":"/root","value":' + "[" * 100_000 + "]" * 100_000 + "} tail",
    ],
)
def test_nesting_too_deep_for_the_parser_is_invalid_json(line: str) -> None:
    decoded = inspect_patch_line(line)

    assert decoded.patch is None
    assert decoded.reason is SkipReason.INVALID_JSON
