"""Tests for JSON extraction and response parsing shared by AI providers."""

import json

import pytest

from focus_feed.adapters.llm import MockAIProvider


@pytest.fixture
def provider() -> MockAIProvider:
    """Parsing helpers live on the base class; any provider will do."""
    return MockAIProvider(min_delay=0, max_delay=0)


def test_extract_json_from_markdown(provider: MockAIProvider) -> None:
    """Test extracting JSON from markdown code block."""
    text = '```json\n{"summary": "x", "confidence": 0.8}\n```'
    parsed = json.loads(provider._extract_json(text))
    assert parsed["confidence"] == 0.8


def test_extract_json_from_markdown_without_language(provider: MockAIProvider) -> None:
    text = '```\n["one", "two",]\n```'
    parsed = json.loads(provider._extract_json(text))
    assert parsed == ["one", "two"]


def test_extract_json_from_text_with_prefix(provider: MockAIProvider) -> None:
    text = 'Here is the analysis:\n{"summary": "ok", "confidence": 0.9}'
    parsed = json.loads(provider._extract_json(text))
    assert parsed["summary"] == "ok"


def test_extract_json_nested_object(provider: MockAIProvider) -> None:
    text = 'Analysis: {"data": {"deep": true}, "score": 0.7}'
    parsed = json.loads(provider._extract_json(text))
    assert parsed["data"]["deep"] is True


def test_extract_json_picks_first_balanced_object(provider: MockAIProvider) -> None:
    """Two objects in prose: the greedy match is invalid, the first object wins."""
    text = 'Result: {"a": 1} and also {"b": 2}'
    assert json.loads(provider._extract_json(text)) == {"a": 1}


def test_fix_json_trailing_comma(provider: MockAIProvider) -> None:
    parsed = json.loads(provider._fix_json('{"a": [1, 2,], "b": true,}'))
    assert parsed == {"a": [1, 2], "b": True}


def test_extract_json_plain_text_fallback(provider: MockAIProvider) -> None:
    assert provider._extract_json("  just plain text  ") == "just plain text"


def test_parse_summary_response(provider: MockAIProvider) -> None:
    response = json.dumps(
        {
            "summary": "A summary",
            "key_points": ["p1", "p2"],
            "tags": ["ai"],
            "insights": ["i1"],
            "confidence": 3,
        }
    )

    summary = provider.parse_summary_response(response, processing_time=1.5)

    assert summary.summary == "A summary"
    assert summary.key_points == ["p1", "p2"]
    assert summary.tags == ["ai"]
    assert summary.confidence == 1.0
    assert summary.processing_time == 1.5


def test_parse_summary_response_defaults_bad_confidence(provider: MockAIProvider) -> None:
    summary = provider.parse_summary_response('{"summary": "s", "keyPoints": ["k"], "confidence": 0}')

    assert summary.key_points == ["k"]
    assert summary.confidence == 0.5
    assert summary.insights == []


def test_parse_summary_response_falls_back_to_text(provider: MockAIProvider) -> None:
    summary = provider.parse_summary_response("  Not JSON at all.  ")

    assert summary.summary == "Not JSON at all."
    assert summary.confidence == 0.3


def test_parse_relevance_score(provider: MockAIProvider) -> None:
    assert provider.parse_relevance_score("Score: 0.82") == 0.82
    assert provider.parse_relevance_score("7") == 1.0
    assert provider.parse_relevance_score("no idea") == 0.5


def test_parse_tags_response(provider: MockAIProvider) -> None:
    assert provider.parse_tags_response("AI, Machine-Learning\npython,, ") == [
        "ai",
        "machine-learning",
        "python",
    ]
    assert provider.parse_tags_response("x" * 60 + ", ok") == ["ok"]
    assert len(provider.parse_tags_response(",".join(f"t{i}" for i in range(12)))) == 8


def test_parse_insights_response(provider: MockAIProvider) -> None:
    text = "1. Short\n2. This is a long enough insight\n3. Another long insight here\n4. And a fourth insight line"

    assert provider.parse_insights_response(text) == [
        "This is a long enough insight",
        "Another long insight here",
        "And a fourth insight line",
    ]
    assert provider.parse_insights_response(" ok ") == ["ok"]
