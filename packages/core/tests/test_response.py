"""Tests for parsing model replies into candidate comments."""

import json

from hunkwise_core.models import CandidateComment
from hunkwise_core.response import ParseFailure, parse_response, strip_fences

REPLY = json.dumps({"reviews": [{"lineNumber": 3, "reviewComment": "Missing error handling"}]})


class TestStripFences:
    def test_plain_text_unchanged(self):
        assert strip_fences(REPLY) == REPLY

    def test_fence_with_language_tag(self):
        assert strip_fences(f"```json\n{REPLY}\n```") == REPLY

    def test_fence_without_language_tag(self):
        assert strip_fences(f"```\n{REPLY}\n```") == REPLY

    def test_stray_edge_backticks(self):
        assert strip_fences(f"`{REPLY}`") == REPLY

    def test_inner_backticks_preserved(self):
        inner = json.dumps({"reviews": [{"lineNumber": 1, "reviewComment": "Use `pathlib` here"}]})
        assert strip_fences(f"```json\n{inner}\n```") == inner


class TestParseResponse:
    def test_valid_reply(self):
        assert parse_response(REPLY, "src/app.py") == [
            CandidateComment(path="src/app.py", line=3, body="Missing error handling")
        ]

    def test_fenced_reply(self):
        result = parse_response(f"```json\n{REPLY}\n```", "src/app.py")
        assert len(result) == 1

    def test_empty_reviews_is_not_a_failure(self):
        assert parse_response('{"reviews": []}', "src/app.py") == []

    def test_bare_list(self):
        raw = json.dumps([{"lineNumber": 1, "reviewComment": "a"}, {"lineNumber": 2, "reviewComment": "b"}])
        assert [c.line for c in parse_response(raw, "x.py")] == [1, 2]

    def test_single_review_without_wrapper(self):
        raw = json.dumps({"lineNumber": 5, "reviewComment": "Off by one"})
        assert parse_response(raw, "x.py") == [CandidateComment(path="x.py", line=5, body="Off by one")]

    def test_alternate_field_names(self):
        raw = json.dumps({"reviews": [{"line": 4, "comment": "Shadowed name"}]})
        assert parse_response(raw, "x.py")[0].line == 4

    def test_numeric_string_line_converted(self):
        raw = json.dumps({"reviews": [{"lineNumber": "12", "reviewComment": "x"}]})
        assert parse_response(raw, "x.py")[0].line == 12

    def test_malformed_entries_dropped(self):
        raw = json.dumps(
            {
                "reviews": [
                    {"lineNumber": 0, "reviewComment": "zero"},
                    {"lineNumber": "abc", "reviewComment": "nan"},
                    {"lineNumber": True, "reviewComment": "bool"},
                    {"lineNumber": 3},
                    "not a dict",
                    {"lineNumber": 9, "reviewComment": "kept"},
                ]
            }
        )
        assert [c.body for c in parse_response(raw, "x.py")] == ["kept"]

    def test_invalid_json_is_parse_failure(self):
        result = parse_response("I could not review this file.", "x.py")
        assert isinstance(result, ParseFailure)
        assert result.raw == "I could not review this file."

    def test_non_list_reviews_is_parse_failure(self):
        assert isinstance(parse_response('{"reviews": "none"}', "x.py"), ParseFailure)

    def test_scalar_reply_is_parse_failure(self):
        assert isinstance(parse_response("42", "x.py"), ParseFailure)
