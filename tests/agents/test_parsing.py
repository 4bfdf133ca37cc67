"""Tests for lenient model-output parsing."""

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from agentflow.agents.parsing import (
    Fallback,
    Parsed,
    latest_user_text,
    parse_json_or_default,
    strip_code_fences,
)


class TestParseJsonOrDefault:
    def test_valid_object(self):
        result = parse_json_or_default('{"a": 1}', {"a": 0})
        assert result == Parsed(value={"a": 1})

    def test_fenced_object(self):
        result = parse_json_or_default('```json\n{"a": 2}\n```', {})
        assert isinstance(result, Parsed)
        assert result.value == {"a": 2}

    def test_invalid_text_falls_back(self):
        default = {"beats": ["x"]}
        result = parse_json_or_default("not json", default)

        assert isinstance(result, Fallback)
        assert result.value == default
        assert result.raw == "not json"

    def test_fallback_is_a_copy(self):
        """Mutating a fallback value never changes the caller's default."""
        default = {"beats": ["x"]}
        result = parse_json_or_default("", default)

        result.value["beats"].append("y")

        assert default == {"beats": ["x"]}

    def test_wrong_container_falls_back(self):
        result = parse_json_or_default("[1, 2]", {"k": "v"})
        assert isinstance(result, Fallback)
        assert "expected a JSON object" in result.reason


def test_strip_code_fences_leaves_plain_text():
    assert strip_code_fences("  plain  ") == "plain"


def test_latest_user_text_picks_most_recent_human_message():
    messages = [
        SystemMessage(content="sys"),
        HumanMessage(content="first"),
        AIMessage(content="reply"),
        HumanMessage(content=[{"type": "text", "text": "second"}]),
    ]
    assert latest_user_text(messages) == "second"


def test_latest_user_text_without_human_message():
    assert latest_user_text([SystemMessage(content="sys")]) == ""
