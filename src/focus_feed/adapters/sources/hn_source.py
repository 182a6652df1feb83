"""Hacker News source via the Firebase API and Algolia search."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from focus_feed.core import FeedItem, ItemSource, SourceConfig, SourceFetchError, SourceType

logger = logging.getLogger(__name__)

ITEM_URL = "https://news.ycombinator.com/item?id={}"

TITLE_CATEGORIES = {
    "show hn:": "show-hn",
    "ask hn:": "ask-hn",
    "tell hn:": "tell-hn",
}

TECH_TOPICS = {
    "machine learning": "machine-learning",
    "ml": "machine-learning",
    "artificial intelligence": "ai",
    "ai": "ai",
    "react": "react",
    "typescript": "typescript",
    "javascript": "javascript",
    "python": "python",
    "nodejs": "nodejs",
    "node.js": "nodejs",
    "docker": "docker",
    "kubernetes": "kubernetes",
    "aws": "aws",
    "cloud": "cloud",
    "api": "api",
    "database": "database",
    "frontend": "frontend",
    "backend": "backend",
    "fullstack": "fullstack",
    "web development": "web-development",
    "mobile": "mobile",
    "ios": "ios",
    "android": "android",
    "startup": "startup",
    "saas": "saas",
}


def categorize_story(title: str) -> list[str]:
    """Every post is a story; Show/Ask/Tell HN posts get their sub-kind too."""
    categories = ["story"]
    title_lower = title.lower()
    for prefix, category in TITLE_CATEGORIES.items():
        if title_lower.startswith(prefix):
            categories.append(category)
            break
    return categories


def extract_topics(title: str, content: Optional[str] = None) -> list[str]:
    """Normalized technology topics mentioned in title or body."""
    text = f"{title} {content or ''}".lower()
    topics: list[str] = []
    for term, normalized in TECH_TOPICS.items():
        if term in text and normalized not in topics:
            topics.append(normalized)
    return topics


class HackerNewsSource(ItemSource):
    """Top stories or full-text search results from Hacker News."""

    def __init__(
        self,
        api_base: str = "https://hacker-news.firebaseio.com/v0",
        search_base: str = "https://hn.algolia.com/api/v1",
        timeout: float = 10.0,
    ) -> None:
        self.api_base = api_base
        self.search_base = search_base
        self.timeout = timeout

    async def fetch_items(self, source: SourceConfig) -> list[FeedItem]:
        """Search when the source has a query, otherwise take the top N stories."""
        options = source.options
        async with httpx.AsyncClient(timeout=options.timeout or self.timeout) as client:
            if options.query:
                items = await self.search_stories(client, options.query, options.count)
            else:
                items = await self.get_top_stories(client, options.count)

        for item in items:
            item.source_name = source.name
        return items

    async def get_top_stories(self, client: httpx.AsyncClient, count: int = 10) -> list[FeedItem]:
        ids = await self._get_json(client, f"{self.api_base}/topstories.json", "HackerNews API")
        if not isinstance(ids, list):
            raise SourceFetchError("HackerNews API returned an unexpected payload")

        stories = await asyncio.gather(
            *(self._fetch_story(client, story_id) for story_id in ids[:count])
        )

        items: list[FeedItem] = []
        for story in stories:
            if not story:
                continue
            try:
                items.append(self._convert_story(story))
            except (AttributeError, KeyError, OverflowError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed HN story %s: %s", story.get("id"), e)
        return items

    async def search_stories(
        self, client: httpx.AsyncClient, query: str, hits_per_page: int = 20
    ) -> list[FeedItem]:
        params = {"query": query, "tags": "story", "hitsPerPage": hits_per_page}
        data = await self._get_json(
            client, f"{self.search_base}/search", "HackerNews search API", params
        )
        if not isinstance(data, dict) or not isinstance(data.get("hits", []), list):
            raise SourceFetchError("HackerNews search API returned an unexpected payload")

        items: list[FeedItem] = []
        for hit in data.get("hits", []):
            if not isinstance(hit, dict):
                continue
            try:
                items.append(self._convert_hit(hit))
            except (AttributeError, KeyError, OverflowError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed HN search hit: %s", e)
        return items

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        label: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise SourceFetchError(f"{label} timed out") from e
        except httpx.HTTPError as e:
            raise SourceFetchError(f"{label} request failed: {e}") from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"{label} error: {response.status_code} {response.reason_phrase}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise SourceFetchError(f"{label} returned invalid JSON: {e}") from e

    async def _fetch_story(self, client: httpx.AsyncClient, story_id: int) -> Optional[dict]:
        """One story's details; failures are logged and yield None."""
        try:
            response = await client.get(f"{self.api_base}/item/{story_id}.json")
        except httpx.HTTPError as e:
            logger.warning("Error fetching story %s: %s", story_id, e)
            return None

        if response.status_code != 200:
            logger.warning("Failed to fetch story %s: %s", story_id, response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict) or data.get("deleted") or data.get("dead"):
            return None
        return data

    def _convert_story(self, story: dict[str, Any]) -> FeedItem:
        story_id = story["id"]
        title = story["title"]
        text = story.get("text")
        permalink = ITEM_URL.format(story_id)

        return FeedItem(
            id=f"hn-{story_id}",
            title=title,
            content=text or title,
            url=story.get("url") or permalink,
            author=story.get("by") or "Unknown",
            published_at=datetime.fromtimestamp(story.get("time", 0), tz=timezone.utc),
            source=SourceType.HN,
            source_url=permalink,
            tags=categorize_story(title) + extract_topics(title, text),
            metadata={
                "score": story.get("score", 0),
                "comments": story.get("descendants", 0),
                "story_type": story.get("type", "story"),
                "hn_id": story_id,
            },
        )

    def _convert_hit(self, hit: dict[str, Any]) -> FeedItem:
        object_id = hit["objectID"]
        title = hit["title"]
        text = hit.get("story_text")
        permalink = ITEM_URL.format(object_id)

        return FeedItem(
            id=f"hn-{object_id}",
            title=title,
            content=text or title,
            url=hit.get("url") or permalink,
            author=hit.get("author") or "Unknown",
            published_at=datetime.fromtimestamp(hit.get("created_at_i", 0), tz=timezone.utc),
            source=SourceType.HN,
            source_url=permalink,
            tags=categorize_story(title) + extract_topics(title, text),
            metadata={
                "score": hit.get("points", 0),
                "comments": hit.get("num_comments", 0),
                "story_type": "story",
                "hn_id": int(object_id),
            },
        )
