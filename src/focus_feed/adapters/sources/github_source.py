"""GitHub search source for repositories."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from focus_feed.core import FeedItem, ItemSource, SourceConfig, SourceFetchError, SourceType

logger = logging.getLogger(__name__)

TRENDING_WINDOWS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
}


class GitHubSource(ItemSource):
    """Search GitHub repositories by query or recent-trending window."""

    def __init__(
        self,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        timeout: float = 10.0,
        user_agent: str = "focus-feed/1.0",
    ) -> None:
        self.token = token
        self.api_base = api_base
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch_items(self, source: SourceConfig) -> list[FeedItem]:
        """Run the source's search and normalize the repositories."""
        options = source.options
        headers = self._get_headers(options.access_token or self.token)
        headers.update(options.headers)

        query = self.build_query(options.query, options.language, options.since)

        async with httpx.AsyncClient(timeout=options.timeout or self.timeout) as client:
            items = await self._search(client, headers, query)

        source_url = source.url or self.api_base
        for item in items:
            item.source_url = source_url
            item.source_name = source.name
        return items

    def build_query(
        self,
        query: Optional[str],
        language: Optional[str] = None,
        since: str = "daily",
        today: Optional[datetime] = None,
    ) -> str:
        """Free-text query, or a created-since window when no query is set."""
        if query:
            search = query
        else:
            days = TRENDING_WINDOWS.get(since, 1)
            now = today or datetime.now(timezone.utc)
            search = f"created:>{(now - timedelta(days=days)).date().isoformat()}"

        if language:
            search += f" language:{language}"
        return search

    async def _search(
        self, client: httpx.AsyncClient, headers: dict[str, str], query: str
    ) -> list[FeedItem]:
        try:
            response = await client.get(
                f"{self.api_base}/search/repositories",
                headers=headers,
                params={"q": query, "sort": "stars", "order": "desc", "per_page": 30},
            )
        except httpx.TimeoutException as e:
            raise SourceFetchError(f"GitHub API timed out for query '{query}'") from e
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Failed to search GitHub repositories: {e}") from e

        if response.status_code != 200:
            message = f"GitHub API error: {response.status_code} {response.reason_phrase}"
            if response.status_code == 403:
                message += " (rate limit or authentication required)"
            raise SourceFetchError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise SourceFetchError(f"GitHub API returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise SourceFetchError("GitHub API returned an unexpected payload")

        items: list[FeedItem] = []
        for repo in data["items"]:
            if not isinstance(repo, dict):
                logger.debug("Skipping non-object repository record: %r", repo)
                continue
            try:
                items.append(self._normalize_repository(repo))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug("Skipping repository %s: %s", repo.get("full_name", "?"), e)

        logger.debug("GitHub query '%s': %d repositories", query, len(items))
        return items

    def _normalize_repository(self, repo: dict[str, Any]) -> FeedItem:
        language = repo.get("language")
        if not isinstance(language, str):
            language = None
        topics = [t for t in (repo.get("topics") or []) if isinstance(t, str)]

        tags: list[str] = []
        for tag in [t.lower() for t in topics] + ([language.lower()] if language else []):
            if tag not in tags:
                tags.append(tag)

        owner = repo.get("owner") or {}
        updated_at = repo.get("updated_at") or repo.get("created_at")
        published_at = (
            datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
            if updated_at
            else datetime.now(timezone.utc)
        )

        return FeedItem(
            id=f"github-{repo['id']}",
            title=repo["full_name"],
            content=repo.get("description") or "No description provided",
            url=repo["html_url"],
            author=owner.get("login") or "Unknown",
            published_at=published_at,
            source=SourceType.GITHUB,
            source_url=self.api_base,
            tags=tags,
            metadata={
                "stars": repo.get("stargazers_count", 0),
                "language": language or "Unknown",
                "topics": topics,
                "created_at": repo.get("created_at"),
                "updated_at": repo.get("updated_at"),
                "avatar_url": owner.get("avatar_url"),
                "repository_id": repo["id"],
            },
        )

    def _get_headers(self, token: Optional[str]) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self.user_agent,
        }

        if token:
            headers["Authorization"] = f"Bearer {token}"

        return headers
