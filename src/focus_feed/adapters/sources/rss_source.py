"""RSS/Atom syndication feed source."""

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup

from focus_feed.core import FeedItem, ItemSource, SourceConfig, SourceFetchError, SourceType

logger = logging.getLogger(__name__)

_SPACE = re.compile(r"\s+")
_NAME_IN_PARENS = re.compile(r"\(([^)]+)\)")


def strip_html(text: str) -> str:
    """Remove markup and collapse whitespace."""
    if not text:
        return ""
    text = BeautifulSoup(text, "html.parser").get_text(separator=" ", strip=True)
    return _SPACE.sub(" ", text)


class RSSSource(ItemSource):
    """Fetch and normalize RSS 2.0 / Atom feeds."""

    def __init__(self, timeout: float = 10.0, user_agent: str = "focus-feed/1.0") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch_items(self, source: SourceConfig) -> list[FeedItem]:
        """Fetch the feed at ``source.url`` and parse it."""
        options = source.options
        headers = {"User-Agent": options.user_agent or self.user_agent, **options.headers}

        try:
            async with httpx.AsyncClient(
                timeout=options.timeout or self.timeout, follow_redirects=True
            ) as client:
                response = await client.get(source.url, headers=headers)
        except httpx.TimeoutException as e:
            raise SourceFetchError(f"Timed out fetching RSS feed {source.url}") from e
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Failed to fetch RSS feed: {e}") from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"Failed to fetch RSS feed: HTTP {response.status_code}: {response.reason_phrase}"
            )

        return self.parse_feed(response.text, source.url, source.name)

    def parse_feed(
        self, feed_content: str, source_url: str, source_name: Optional[str] = None
    ) -> list[FeedItem]:
        """Parse raw feed text into items, skipping malformed entries."""
        feed = feedparser.parse(feed_content)

        if feed.bozo and not feed.entries:
            raise SourceFetchError(f"Failed to parse RSS feed: {feed.get('bozo_exception')}")
        if feed.bozo:
            logger.warning("Feed parsing warning for %s: %s", source_url, feed.get("bozo_exception"))

        items: list[FeedItem] = []
        for entry in feed.entries:
            try:
                items.append(self._normalize_entry(entry, source_url, source_name))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping malformed entry in %s: %s", source_url, e)

        return items

    def _normalize_entry(
        self, entry: Any, source_url: str, source_name: Optional[str]
    ) -> FeedItem:
        link = entry.get("link") or ""
        item_id = entry.get("id") or link or f"{source_url}-{int(datetime.now().timestamp() * 1000)}"
        title = (entry.get("title") or "Untitled").strip()

        body = ""
        if entry.get("content"):
            body = entry["content"][0].get("value", "")
        body = body or entry.get("summary") or entry.get("description") or ""

        categories = [t.get("term") for t in entry.get("tags", []) if t.get("term")]

        return FeedItem(
            id=item_id,
            title=strip_html(title) or "Untitled",
            content=strip_html(body),
            url=link,
            author=self._extract_author(entry),
            published_at=self._parse_date(entry),
            source=SourceType.RSS,
            source_url=source_url,
            source_name=source_name,
            tags=[c.lower().strip() for c in categories if c.strip()],
            metadata={
                "categories": categories,
                "guid": entry.get("id"),
                "original_pub_date": entry.get("published"),
            },
        )

    def _extract_author(self, entry: Any) -> str:
        """Resolve the author from the fields different feed dialects use."""
        author = entry.get("author")
        if author:
            # "email (Name)" form
            match = _NAME_IN_PARENS.search(author)
            return match.group(1) if match else author

        detail = entry.get("author_detail") or {}
        if detail.get("name"):
            return detail["name"]

        creator = entry.get("creator") or entry.get("dc_creator")
        if creator:
            return creator

        return "Unknown"

    def _parse_date(self, entry: Any) -> datetime:
        """Parse the publication date; unknown or unparsable dates become now."""
        for key in ("published", "updated", "created"):
            parsed = entry.get(f"{key}_parsed")
            if parsed:
                try:
                    return datetime(*parsed[:6], tzinfo=timezone.utc)
                except (TypeError, ValueError):
                    pass

            raw = entry.get(key)
            if raw:
                try:
                    value = parsedate_to_datetime(raw)
                    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                except (TypeError, ValueError):
                    pass

        return datetime.now(timezone.utc)
