"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from focus_feed.core import FeedItem, FocusProfile, KeywordConfig, ProcessingConfig, SourceType

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

LONG_TEXT = (
    "A detailed write-up covering the architecture, trade-offs and rollout plan "
    "of the system, with benchmarks and lessons learned along the way."
)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_item() -> Callable[..., FeedItem]:
    """Factory for feed items with sensible defaults."""
    counter = {"n": 0}

    def factory(**overrides: Any) -> FeedItem:
        counter["n"] += 1
        n = counter["n"]
        values: dict[str, Any] = {
            "id": f"item-{n}",
            "title": f"Item number {n} headline",
            "content": LONG_TEXT,
            "url": f"https://example.com/{n}",
            "author": "Author",
            "published_at": NOW - timedelta(hours=1),
            "source": SourceType.RSS,
            "source_url": "https://example.com/feed",
        }
        values.update(overrides)
        return FeedItem(**values)

    return factory


@pytest.fixture
def make_profile() -> Callable[..., FocusProfile]:
    def factory(
        high: list[str] | None = None,
        medium: list[str] | None = None,
        low: list[str] | None = None,
        exclude: list[str] | None = None,
        require: list[str] | None = None,
        **processing: Any,
    ) -> FocusProfile:
        return FocusProfile(
            id=processing.pop("profile_id", "test-profile"),
            name="Test Profile",
            description=processing.pop("description", "AI product development"),
            keywords=KeywordConfig(
                high=high or [],
                medium=medium or [],
                low=low or [],
                exclude=exclude or [],
                require=require or [],
            ),
            sources=processing.pop("sources", []),
            processing=ProcessingConfig(**processing),
        )

    return factory
