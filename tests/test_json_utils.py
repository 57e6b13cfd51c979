"""Tests for tolerant JSON parsing."""

import json

import pytest

from mat_agent.utils.json_utils import escape_control_characters, parse_json_safe


def test_plain_json():
    assert parse_json_safe('{"a": 1}') == {"a": 1}


def test_pretty_printed_json_keeps_layout():
    assert parse_json_safe('{\n  "a": [1, 2]\n}\n') == {"a": [1, 2]}


def test_fenced_code_block():
    content = 'Here you go:\n```json\n{"modifications": []}\n```\nDone.'
    assert parse_json_safe(content) == {"modifications": []}


def test_unlabelled_fence():
    assert parse_json_safe('```\n[1, 2]\n```') == [1, 2]


def test_raw_newlines_inside_strings():
    """Models often put literal newlines in diff strings."""
    content = '{"diff": "@@ -1 +1 @@\n-a\n+\tb"}'
    assert parse_json_safe(content) == {"diff": "@@ -1 +1 @@\n-a\n+\tb"}


def test_escaped_quotes_survive():
    content = '{"a": "say \\"hi\\"\nnow"}'
    assert parse_json_safe(content) == {"a": 'say "hi"\nnow'}


def test_escape_leaves_text_outside_strings():
    assert escape_control_characters('{\n"a":\t"x\ny"\n}') == '{\n"a":\t"x\\ny"\n}'


def test_invalid_json_raises():
    with pytest.raises(json.JSONDecodeError):
        parse_json_safe("not json at all")
