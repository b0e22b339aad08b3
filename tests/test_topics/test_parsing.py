"""Tests for layered recovery of model output."""

import pytest

from trendflow.core.errors import MalformedResponseError
from trendflow.topics.parsing import (
    extract_json_object,
    parse_directions,
    parse_payload,
    repair_syntax,
    strip_code_fences,
)


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_none(self):
        assert strip_code_fences(None) == ""


class TestExtractJsonObject:
    def test_surrounding_prose_removed(self):
        assert extract_json_object('Sure! {"a": {"b": 2}} Hope it helps.') == '{"a": {"b": 2}}'

    def test_braces_inside_strings_ignored(self):
        payload = '{"title": "use {curly} braces", "x": 1} trailing }'

        assert extract_json_object(payload) == '{"title": "use {curly} braces", "x": 1}'

    def test_escaped_quote_inside_string(self):
        payload = '{"title": "say \\"}\\" loudly"} after'

        assert extract_json_object(payload) == '{"title": "say \\"}\\" loudly"}'

    def test_unclosed_object_returned_unchanged(self):
        payload = '{"directions": [{"direction_title": "A"'

        assert extract_json_object(payload) == payload

    def test_no_object(self):
        assert extract_json_object("nothing here") == "nothing here"


class TestRepairSyntax:
    def test_bare_keys_and_single_quotes(self):
        repaired = repair_syntax("{direction_title:'A', mvps:['x','y']}")

        assert repaired == '{"direction_title": "A", "mvps":["x","y"]}'

    def test_no_change_returns_none(self):
        assert repair_syntax('{"a": "b"}') is None


class TestParsePayload:
    def test_strict_json(self):
        assert parse_payload('{"directions": []}') == {"directions": []}

    def test_javascript_style_literal(self):
        payload = parse_payload("{\"directions\":[{direction_title:'A', mvps:['x','y']}]}")

        assert payload["directions"][0] == {"direction_title": "A", "mvps": ["x", "y"]}

    def test_fenced_with_prose(self):
        content = 'Here is the analysis:\n```json\n{"directions": [{"direction_title": "B"}]}\n```'

        assert parse_payload(content)["directions"] == [{"direction_title": "B"}]

    def test_truncated_output_is_repaired(self):
        payload = parse_payload('{"directions": [{"direction_title": "C", "mvps": ["one"')

        assert payload["directions"][0]["direction_title"] == "C"

    def test_trailing_comma_is_repaired(self):
        payload = parse_payload('{"directions": [{"direction_title": "D"},]}')

        assert payload["directions"] == [{"direction_title": "D"}]

    def test_missing_directions_list_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_payload('{"ideas": []}')

    def test_garbage_is_malformed(self):
        with pytest.raises(MalformedResponseError):
            parse_payload("I could not find any directions, sorry.")


class TestParseDirections:
    def test_untitled_entries_dropped(self):
        content = """
        {"directions": [
            {"direction_title": "  Invoice autopilot ", "mvps": ["reminder bot", 3, ""]},
            {"summary": "no title at all"},
            "not an object",
            {"direction_name_cn": "招聘助手"}
        ]}
        """

        directions = parse_directions(content)

        assert [d.direction_title for d in directions] == ["Invoice autopilot", "招聘助手"]
        assert directions[0].mvps == ["reminder bot"]

    def test_empty_directions(self):
        assert parse_directions('{"directions": []}') == []
