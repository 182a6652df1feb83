"""Anthropic Claude provider using the Messages API."""

import asyncio
import logging
from typing import Optional

import httpx

from focus_feed.adapters.llm.base_provider import BaseAIProvider
from focus_feed.config import Settings
from focus_feed.core import (
    AIModelConfig,
    AIRequest,
    AIResponse,
    ConfigError,
    ProviderError,
    RateLimitError,
    TokenUsage,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class ClaudeProvider(BaseAIProvider):
    """Claude client with content-aware prompts and rate-limit backoff."""

    name = "anthropic"
    supported_models = (
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-haiku-20240307",
        "claude-3-sonnet-20240229",
        "claude-3-opus-20240229",
    )

    summary_temperature = 0.2
    insights_max_tokens = 300
    insights_temperature = 0.3

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com/v1",
        request_timeout: float = 60.0,
        max_retries: int = 1,
        initial_retry_delay: float = 1.0,
        max_retry_delay: float = 10.0,
    ) -> None:
        super().__init__()
        self.api_key = api_key
        self.base_url = base_url
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.max_retry_delay = max_retry_delay
        self._rate_limit_delay = initial_retry_delay

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeProvider":
        claude = settings.claude
        return cls(
            api_key=settings.anthropic_api_key,
            base_url=claude.base_url,
            request_timeout=claude.request_timeout,
            max_retries=claude.max_retries,
            initial_retry_delay=claude.initial_retry_delay,
            max_retry_delay=claude.max_retry_delay,
        )

    async def _validate_config(self, config: AIModelConfig) -> None:
        if config.model not in self.supported_models:
            raise ConfigError(f"Unsupported Anthropic model: {config.model}")

        if not self.api_key:
            raise ConfigError("ANTHROPIC_API_KEY environment variable is required")

        # Check the API with a minimal request
        try:
            await self._post_messages(
                {
                    "model": config.model,
                    "max_tokens": 10,
                    "messages": [{"role": "user", "content": "Hello"}],
                }
            )
        except (ProviderError, httpx.HTTPError) as e:
            raise ProviderError(f"Failed to connect to Anthropic API: {e}") from e

    async def _make_api_request(self, request: AIRequest) -> AIResponse:
        model = self.config.model
        data = await self._post_messages(
            {
                "model": model,
                "max_tokens": request.max_tokens or 1000,
                "temperature": request.temperature,
                "messages": [{"role": "user", "content": request.prompt}],
            }
        )

        text = "".join(
            block.get("text", "") for block in data["content"] if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        input_tokens = usage.get("input_tokens", 0)
        output_tokens = usage.get("output_tokens", 0)

        return AIResponse(
            content=text,
            usage=TokenUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            model=model,
            provider=self.name,
        )

    async def _post_messages(self, payload: dict) -> dict:
        """POST to /messages, retrying on 429 with exponential backoff."""
        for attempt in range(self.max_retries + 1):
            async with httpx.AsyncClient(timeout=self.request_timeout) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": ANTHROPIC_VERSION,
                        "content-type": "application/json",
                    },
                    json=payload,
                )

            if response.status_code == 200:
                return response.json()

            if response.status_code == 429:
                if attempt >= self.max_retries:
                    raise RateLimitError("Anthropic rate limit exceeded after retries")
                delay = self._get_retry_delay(response)
                logger.warning("Anthropic rate limit hit, retrying after %.1fs", delay)
                await asyncio.sleep(delay)
                self._rate_limit_delay = min(self._rate_limit_delay * 2, self.max_retry_delay)
                continue

            raise ProviderError(
                f"Anthropic API request failed: {response.status_code} {response.text[:200]}"
            )

        raise RateLimitError("Anthropic rate limit exceeded after retries")

    def _get_retry_delay(self, response: httpx.Response) -> float:
        """Retry-After header when present, otherwise the current backoff."""
        retry_after: Optional[str] = response.headers.get("retry-after")
        if retry_after:
            try:
                return min(float(retry_after), self.max_retry_delay)
            except ValueError:
                pass
        return self._rate_limit_delay

    def _build_summary_prompt(self, content: str, focus_area: Optional[str] = None) -> str:
        focus = f"\nFocus Area: {focus_area}" if focus_area else ""
        lines = [line for line in content.split("\n") if line.strip()]
        title = lines[0] if lines else "No title"
        preview = "\n".join(lines[:20])[:3000]

        return f"""You are an expert content analyst. Analyze this article and provide a structured summary in JSON format.

Article Title: "{title}"{focus}

Article Content:
{preview}

Instructions:
1. Capture the specific details, examples and insights from this particular article
2. Avoid generic statements
3. Extract concrete information, data points or case studies mentioned
4. Identify the main argument of the piece
5. Note any practical applications

Return a JSON object with these fields:
- summary: A specific 2-3 sentence summary
- keyPoints: Array of 3-5 specific points from the article
- tags: Array of relevant technical/topic tags based on actual content
- insights: Array of 2-3 actionable takeaways specific to this content
- confidence: Your confidence score (0.0-1.0) in the analysis quality

If the content is promotional or lacks substance, reflect that in a lower confidence score."""

    def _build_relevance_prompt(self, content: str, focus_description: str) -> str:
        return f"""Analyze the semantic relevance of this content to the focus area.

Focus Area: {focus_description}

Content to analyze:
{content[:2000]}

Rate the relevance on a scale of 0.0 to 1.0 based on:
- Direct relevance to the focus area (40%)
- Depth and specificity of information (30%)
- Practical applicability and insights (20%)
- Content quality and credibility (10%)

Return only a decimal number between 0.0 and 1.0 (e.g., 0.73)"""

    def _build_tags_prompt(self, content: str, existing_tags: list[str]) -> str:
        existing = f"\nExisting tags: {', '.join(existing_tags)}" if existing_tags else ""
        return f"""Generate relevant tags for this content based on the technologies, concepts and topics it actually mentions.{existing}

Content:
{content[:1500]}

Return 5-8 specific tags as a comma-separated list.
Example: react-hooks, typescript-generics, performance-optimization"""

    def _build_insights_prompt(self, content: str, focus_area: Optional[str] = None) -> str:
        focus = f"Focus on insights relevant to: {focus_area}\n" if focus_area else ""
        return f"""{focus}Extract 2-3 key insights from this specific content that readers can act on.

Content:
{content[:2000]}

Format as a numbered list:
1. First specific insight
2. Second specific insight
3. Third specific insight (if applicable)"""
