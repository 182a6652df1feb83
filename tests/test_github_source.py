"""Tests for GitHub source."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from focus_feed.adapters.config_source import StaticConfigSource
from focus_feed.adapters.sources import GitHubSource
from focus_feed.aggregator import Aggregator
from focus_feed.core import SourceConfig, SourceFetchError, SourceOptions, SourceType

REPO = {
    "id": 123,
    "full_name": "acme/agent-kit",
    "description": "Toolkit for building agents",
    "html_url": "https://github.com/acme/agent-kit",
    "stargazers_count": 4200,
    "language": "Python",
    "topics": ["LLM", "agents", "python"],
    "created_at": "2024-05-20T09:00:00Z",
    "updated_at": "2024-06-01T11:00:00Z",
    "owner": {"login": "acme", "avatar_url": "https://avatars.example.com/acme"},
}


def _source(**options) -> SourceConfig:
    return SourceConfig(
        id="gh",
        name="GitHub trending",
        type=SourceType.GITHUB,
        url="https://github.com/trending",
        options=SourceOptions(**options),
    )


def _mock_response(status_code: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.reason_phrase = "Forbidden" if status_code == 403 else "OK"
    response.json.return_value = payload
    return response


def test_build_query() -> None:
    source = GitHubSource()
    today = datetime(2024, 6, 1, tzinfo=timezone.utc)

    assert source.build_query("vector db", "rust") == "vector db language:rust"
    assert source.build_query(None, None, "daily", today) == "created:>2024-05-31"
    assert source.build_query(None, None, "weekly", today) == "created:>2024-05-25"
    assert source.build_query(None, "go", "monthly", today) == "created:>2024-05-02 language:go"


@pytest.mark.asyncio
async def test_fetch_items_normalizes_repositories() -> None:
    source = GitHubSource(token="default-token")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(200, {"items": [REPO, {"id": 9}]})
        mock_client_class.return_value = mock_client

        items = await source.fetch_items(_source(query="agents", language="python"))

    assert len(items) == 1
    item = items[0]
    assert item.id == "github-123"
    assert item.title == "acme/agent-kit"
    assert item.author == "acme"
    assert item.published_at == datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)
    assert item.tags == ["llm", "agents", "python"]
    assert item.metadata["stars"] == 4200
    assert item.source_url == "https://github.com/trending"
    assert item.source_name == "GitHub trending"

    _, kwargs = mock_client.get.call_args
    assert kwargs["params"]["q"] == "agents language:python"
    assert kwargs["params"]["sort"] == "stars"
    assert kwargs["headers"]["Authorization"] == "Bearer default-token"


@pytest.mark.asyncio
async def test_source_token_overrides_default() -> None:
    source = GitHubSource(token="default-token")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(200, {"items": []})
        mock_client_class.return_value = mock_client

        await source.fetch_items(_source(access_token="per-source"))

    _, kwargs = mock_client.get.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer per-source"


@pytest.mark.asyncio
async def test_missing_description_and_language() -> None:
    repo = {**REPO, "description": None, "language": None, "topics": []}

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(200, {"items": [repo]})
        mock_client_class.return_value = mock_client

        items = await GitHubSource().fetch_items(_source())

    assert items[0].content == "No description provided"
    assert items[0].metadata["language"] == "Unknown"
    assert items[0].tags == []


@pytest.mark.asyncio
async def test_forbidden_raises_fetch_error() -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(403)
        mock_client_class.return_value = mock_client

        with pytest.raises(SourceFetchError, match="403"):
            await GitHubSource().fetch_items(_source())


@pytest.mark.asyncio
async def test_unexpected_payload_shape_fails_the_source() -> None:
    source = _source()
    aggregator = Aggregator(StaticConfigSource([source], []), {SourceType.GITHUB: GitHubSource()})

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(200, [REPO])
        mock_client_class.return_value = mock_client

        result = await aggregator.fetch_from_source(source)

    assert not result.success
    assert result.error == "GitHub API returned an unexpected payload"


@pytest.mark.asyncio
async def test_malformed_repository_fields_are_tolerated() -> None:
    odd_topics = {**REPO, "id": 2, "topics": [None, "Agents", 7], "language": 3}
    source = _source()
    aggregator = Aggregator(StaticConfigSource([source], []), {SourceType.GITHUB: GitHubSource()})

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.get.return_value = _mock_response(
            200, {"items": ["not-a-repo", odd_topics, {**REPO, "updated_at": 5}]}
        )
        mock_client_class.return_value = mock_client

        result = await aggregator.fetch_from_source(source)

    assert result.success
    assert [item.id for item in result.items] == ["github-2"]
    assert result.items[0].tags == ["agents"]
    assert result.items[0].metadata["language"] == "Unknown"
