"""Source adapters for fetching items."""

from typing import Optional

from focus_feed.adapters.sources.github_source import GitHubSource
from focus_feed.adapters.sources.hn_source import HackerNewsSource
from focus_feed.adapters.sources.rss_source import RSSSource
from focus_feed.config import Settings
from focus_feed.core import ItemSource, SourceType


def build_source_registry(settings: Optional[Settings] = None) -> dict[SourceType, ItemSource]:
    """One adapter per implemented source type."""
    settings = settings or Settings()
    fetch = settings.fetch
    return {
        SourceType.RSS: RSSSource(timeout=fetch.timeout, user_agent=fetch.user_agent),
        SourceType.GITHUB: GitHubSource(
            token=settings.github_token,
            api_base=fetch.github_api_url,
            timeout=fetch.timeout,
            user_agent=fetch.user_agent,
        ),
        SourceType.HN: HackerNewsSource(
            api_base=fetch.hn_api_url,
            search_base=fetch.hn_search_url,
            timeout=fetch.timeout,
        ),
    }


__all__ = ["GitHubSource", "HackerNewsSource", "RSSSource", "build_source_registry"]
