"""Tests for Claude provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from focus_feed.adapters.llm import ClaudeProvider
from focus_feed.config import Settings
from focus_feed.core import AIModelConfig, ConfigError, ProviderError, RateLimitError

MODEL = AIModelConfig(provider="anthropic", model="claude-3-5-haiku-20241022", max_tokens=300)


def _response(status_code: int, text: str = "ok", headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = text
    response.json.return_value = {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }
    return response


def _mock_client(mock_client_class: MagicMock, *responses: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.post.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.fixture
def provider() -> ClaudeProvider:
    return ClaudeProvider(api_key="test-key", max_retries=1, initial_retry_delay=1.0)


def test_from_settings() -> None:
    settings = Settings(anthropic_api_key="from-env")
    settings.claude.max_retries = 4

    provider = ClaudeProvider.from_settings(settings)

    assert provider.api_key == "from-env"
    assert provider.max_retries == 4


@pytest.mark.asyncio
async def test_generate_tags_success(provider: ClaudeProvider) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(
            mock_client_class, _response(200, "Hi"), _response(200, "LLM, Python")
        )

        await provider.initialize(MODEL)
        tags = await provider.generate_tags("Content about LLMs in Python", [])

    assert tags == ["llm", "python"]
    assert provider.request_count == 1
    assert provider.total_tokens == 15

    args, kwargs = mock_client.post.call_args
    assert args[0] == "https://api.anthropic.com/v1/messages"
    assert kwargs["headers"]["x-api-key"] == "test-key"
    assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
    assert kwargs["json"]["model"] == MODEL.model
    assert kwargs["json"]["max_tokens"] == 100


@pytest.mark.asyncio
async def test_retry_on_429(provider: ClaudeProvider) -> None:
    """A rate-limited request sleeps for the backoff and is retried."""
    with patch("httpx.AsyncClient") as mock_client_class, patch(
        "focus_feed.adapters.llm.claude_provider.asyncio.sleep", new_callable=AsyncMock
    ) as mock_sleep:
        _mock_client(
            mock_client_class, _response(200), _response(429), _response(200, "0.8")
        )

        await provider.initialize(MODEL)
        score = await provider.calculate_semantic_relevance("text", "focus")

    assert score == 0.8
    mock_sleep.assert_awaited_once_with(1.0)
    assert provider._rate_limit_delay == 2.0


@pytest.mark.asyncio
async def test_retry_after_header_is_capped(provider: ClaudeProvider) -> None:
    with patch("httpx.AsyncClient") as mock_client_class, patch(
        "focus_feed.adapters.llm.claude_provider.asyncio.sleep", new_callable=AsyncMock
    ) as mock_sleep:
        _mock_client(
            mock_client_class,
            _response(200),
            _response(429, headers={"retry-after": "120"}),
            _response(200, "0.4"),
        )

        await provider.initialize(MODEL)
        await provider.calculate_semantic_relevance("text", "focus")

    mock_sleep.assert_awaited_once_with(10.0)


@pytest.mark.asyncio
async def test_rate_limit_error_after_retries(provider: ClaudeProvider) -> None:
    with patch("httpx.AsyncClient") as mock_client_class, patch(
        "focus_feed.adapters.llm.claude_provider.asyncio.sleep", new_callable=AsyncMock
    ):
        _mock_client(mock_client_class, _response(200), _response(429), _response(429))

        await provider.initialize(MODEL)
        with pytest.raises(RateLimitError):
            await provider.generate_tags("text", [])


@pytest.mark.asyncio
async def test_server_error_raises_provider_error(provider: ClaudeProvider) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, _response(200), _response(500, "overloaded"))

        await provider.initialize(MODEL)
        with pytest.raises(ProviderError, match="500"):
            await provider.extract_insights("text")


@pytest.mark.asyncio
async def test_initialize_requires_api_key() -> None:
    provider = ClaudeProvider(api_key="")

    with patch("httpx.AsyncClient") as mock_client_class:
        with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
            await provider.initialize(MODEL)

    mock_client_class.assert_not_called()
    assert not provider.is_ready()


@pytest.mark.asyncio
async def test_initialize_rejects_unknown_model(provider: ClaudeProvider) -> None:
    with pytest.raises(ConfigError, match="Unsupported"):
        await provider.initialize(AIModelConfig(provider="anthropic", model="gpt-4"))


@pytest.mark.asyncio
async def test_initialize_liveness_check_failure(provider: ClaudeProvider) -> None:
    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_client(mock_client_class, _response(401, "invalid x-api-key"))

        with pytest.raises(ProviderError, match="Failed to connect"):
            await provider.initialize(MODEL)

    assert not provider.is_ready()
