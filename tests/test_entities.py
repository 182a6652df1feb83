"""Tests for core entities."""

from datetime import datetime, timezone

import pytest

from focus_feed.core import (
    FeedItem,
    FocusProfile,
    GatewayResponse,
    ProcessingConfig,
    ResponseState,
    SourceConfig,
    SourceType,
)


def test_feed_item_requires_id() -> None:
    with pytest.raises(ValueError, match="Item id cannot be empty"):
        FeedItem(
            id="",
            title="Title",
            content="Body",
            url="https://example.com",
            author="someone",
            published_at=datetime.now(timezone.utc),
            source=SourceType.RSS,
            source_url="https://example.com/feed",
        )


def test_searchable_text_includes_tags(make_item) -> None:
    item = make_item(title="Hello", content="World", tags=["Rust"])

    assert item.searchable_text() == "hello world rust"


def test_source_config_from_dict_accepts_camel_case() -> None:
    source = SourceConfig.from_dict(
        {
            "id": "gh",
            "name": "GitHub",
            "type": "github",
            "url": "https://github.com",
            "fetchInterval": 30,
            "config": {"accessToken": "abc", "timeout": 15000, "language": "rust"},
        }
    )

    assert source.type == SourceType.GITHUB
    assert source.fetch_interval == 30
    assert source.options.access_token == "abc"
    assert source.options.timeout == 15.0
    assert source.options.language == "rust"


def test_source_config_validation() -> None:
    with pytest.raises(ValueError):
        SourceConfig(id="x", name="X", type=SourceType.RSS, url="u", weight=1.5)

    with pytest.raises(ValueError):
        SourceConfig.from_dict({"id": "x", "name": "X", "type": "myspace", "url": "u"})


def test_profile_from_dict_reads_keyword_tiers() -> None:
    profile = FocusProfile.from_dict(
        {
            "id": "ai",
            "name": "AI",
            "keywords": {
                "boost": {"high": ["llm"], "medium": ["python"], "low": ["api"]},
                "filter": {"exclude": ["crypto"], "require": ["ai"]},
            },
            "processing": {"minRelevanceScore": 0.2, "maxAgeDays": 7, "checkDuplicates": False},
        }
    )

    assert profile.keywords.high == ["llm"]
    assert profile.keywords.require == ["ai"]
    assert profile.processing.min_relevance_score == 0.2
    assert profile.processing.max_age_days == 7
    assert profile.processing.check_duplicates is False
    assert profile.enabled is True


def test_processing_config_validation() -> None:
    with pytest.raises(ValueError, match="min_relevance_score"):
        ProcessingConfig(min_relevance_score=2)

    with pytest.raises(ValueError, match="max_age_days"):
        ProcessingConfig(max_age_days=0)


def test_gateway_response_flags() -> None:
    assert GatewayResponse(state=ResponseState.CACHED).cached
    stale = GatewayResponse(state=ResponseState.STALE)
    assert stale.cached and stale.stale
    rejected = GatewayResponse(state=ResponseState.REJECTED)
    assert rejected.quota_exceeded and not rejected.cached
    assert not GatewayResponse(state=ResponseState.FRESH).cached
