"""Tests for swarm.utils.parsing: strip_fences, extract_json."""

from swarm.utils.parsing import extract_json, strip_fences


# --- strip_fences ---

class TestStripFences:
    def test_strip_json_fences(self):
        text = '```json\n{"key": "value"}\n```'
        assert strip_fences(text) == '{"key": "value"}'

    def test_strip_plain_fences(self):
        text = '```\n{"key": "value"}\n```'
        assert strip_fences(text) == '{"key": "value"}'

    def test_no_fences_returns_stripped(self):
        text = '  {"key": "value"}  '
        assert strip_fences(text) == '{"key": "value"}'

    def test_fences_with_extra_whitespace(self):
        text = '```json\n\n  {"key": "value"}  \n\n```'
        assert strip_fences(text).startswith("{")

    def test_unterminated_fence(self):
        text = '```json\n{"key": "value"}'
        assert strip_fences(text) == '{"key": "value"}'

    def test_fenced_block_inside_prose(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nHope that helps.'
        assert strip_fences(text) == '{"a": 1}'

    def test_non_string_returns_empty(self):
        assert strip_fences(None) == ""


# --- extract_json ---

class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"overall": 70}') == {"overall": 70}

    def test_fenced_object(self):
        assert extract_json('```json\n{"overall": 70}\n```') == {"overall": 70}

    def test_object_wrapped_in_prose(self):
        text = 'Sure! The result is {"overall": 70, "verdict": "ok"} as requested.'
        assert extract_json(text) == {"overall": 70, "verdict": "ok"}

    def test_garbage_returns_none(self):
        assert extract_json("not json at all") is None

    def test_empty_returns_none(self):
        assert extract_json("") is None
        assert extract_json("   ") is None

    def test_truncated_object_returns_none(self):
        assert extract_json('{"overall": 70, "verdict": "cut o') is None

    def test_array_is_returned_as_is(self):
        assert extract_json("[1, 2]") == [1, 2]

    def test_over_long_integer_returns_none(self):
        assert extract_json('{"overall": ' + "9" * 5000 + "}") is None

    def test_deep_nesting_returns_none(self):
        assert extract_json("[" * 100000 + "]" * 100000) is None
