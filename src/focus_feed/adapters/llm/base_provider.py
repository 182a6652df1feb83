"""Shared prompt building and response parsing for AI providers."""

import dataclasses
import json
import re
import time
from abc import abstractmethod
from typing import Any, Optional

import httpx

from focus_feed.core import (
    AIModelConfig,
    AIProvider,
    AIRequest,
    AIResponse,
    ContentSummary,
    ProviderError,
    ProviderNotReadyError,
)

_NUMBER = re.compile(r"(\d+\.?\d*)")
_LIST_NUMBER = re.compile(r"^\d+\.\s*")


class BaseAIProvider(AIProvider):
    """Provider skeleton: subclasses validate config and make the raw API call."""

    name = "base"
    supported_models: tuple[str, ...] = ()

    summary_temperature = 0.3
    insights_max_tokens = 200
    insights_temperature = 0.4

    def __init__(self) -> None:
        self.config: Optional[AIModelConfig] = None
        self._initialized = False
        self.request_count = 0
        self.total_tokens = 0

    async def initialize(self, config: AIModelConfig) -> None:
        self.config = config
        await self._validate_config(config)
        self._initialized = True

    def is_ready(self) -> bool:
        return self._initialized and self.config is not None

    @abstractmethod
    async def _validate_config(self, config: AIModelConfig) -> None:
        """Check provider-specific configuration, raising on problems."""
        pass

    @abstractmethod
    async def _make_api_request(self, request: AIRequest) -> AIResponse:
        pass

    async def process_request(self, request: AIRequest) -> AIResponse:
        """Run one request and stamp its wall-clock duration."""
        if not self.is_ready():
            raise ProviderNotReadyError(f"{self.name} provider not initialized")

        start = time.monotonic()
        try:
            response = await self._make_api_request(request)
        except ProviderError:
            raise
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e

        self.request_count += 1
        self.total_tokens += response.usage.total_tokens
        return dataclasses.replace(response, duration=time.monotonic() - start)

    async def generate_summary(
        self, content: str, focus_area: Optional[str] = None
    ) -> ContentSummary:
        start = time.monotonic()
        response = await self.process_request(
            AIRequest(
                prompt=self._build_summary_prompt(content, focus_area),
                content=content,
                max_tokens=self.config.max_tokens if self.config else 300,
                temperature=self.summary_temperature,
            )
        )
        return self.parse_summary_response(response.content, time.monotonic() - start)

    async def calculate_semantic_relevance(self, content: str, focus_description: str) -> float:
        response = await self.process_request(
            AIRequest(
                prompt=self._build_relevance_prompt(content, focus_description),
                content=content,
                max_tokens=50,
                temperature=0.1,
            )
        )
        return self.parse_relevance_score(response.content)

    async def generate_tags(self, content: str, existing_tags: list[str]) -> list[str]:
        response = await self.process_request(
            AIRequest(
                prompt=self._build_tags_prompt(content, existing_tags),
                content=content,
                max_tokens=100,
                temperature=0.2,
            )
        )
        return self.parse_tags_response(response.content)

    async def extract_insights(self, content: str, focus_area: Optional[str] = None) -> list[str]:
        response = await self.process_request(
            AIRequest(
                prompt=self._build_insights_prompt(content, focus_area),
                content=content,
                max_tokens=self.insights_max_tokens,
                temperature=self.insights_temperature,
            )
        )
        return self.parse_insights_response(response.content)

    # Prompts

    def _build_summary_prompt(self, content: str, focus_area: Optional[str] = None) -> str:
        focus = f"Focus area: {focus_area}\n" if focus_area else ""
        return f"""{focus}Please analyze this content and provide a structured summary in JSON format:

Content: "{content}"

Return a JSON object with these fields:
- summary: A concise 2-3 sentence summary
- keyPoints: Array of 3-5 key points
- tags: Array of relevant topic tags
- insights: Array of 2-3 key insights or takeaways
- confidence: Confidence score from 0.0 to 1.0

Example format:
{{
  "summary": "Brief summary here",
  "keyPoints": ["Point 1", "Point 2"],
  "tags": ["tag1", "tag2"],
  "insights": ["Insight 1", "Insight 2"],
  "confidence": 0.85
}}"""

    def _build_relevance_prompt(self, content: str, focus_description: str) -> str:
        return f"""Rate the relevance of this content to the focus area on a scale of 0.0 to 1.0.

Focus Area: {focus_description}
Content: "{content}"

Consider:
- Direct relevance to the focus area
- Practical applicability
- Novelty and insights
- Quality of information

Return only a decimal number between 0.0 and 1.0 (e.g., 0.75)"""

    def _build_tags_prompt(self, content: str, existing_tags: list[str]) -> str:
        existing = f"\nExisting tags: {', '.join(existing_tags)}" if existing_tags else ""
        return f"""Generate 5-8 relevant tags for this content.{existing}

Content: "{content}"

Return tags as a comma-separated list. Focus on technology and framework
names, concepts and methodologies, and industry categories.

Example: machine-learning, python, neural-networks, deep-learning, tutorial"""

    def _build_insights_prompt(self, content: str, focus_area: Optional[str] = None) -> str:
        focus = f"Focus on insights relevant to: {focus_area}\n" if focus_area else ""
        return f"""{focus}Extract 2-3 key insights or takeaways from this content.

Content: "{content}"

Return insights as a numbered list. Prefer actionable advice, important
trends and critical considerations.

Format as:
1. First insight
2. Second insight
3. Third insight"""

    # Parsers

    def parse_summary_response(self, response: str, processing_time: float = 0.0) -> ContentSummary:
        """Structured summary from JSON, or the raw text with low confidence."""
        try:
            parsed = json.loads(self._extract_json(response))
        except json.JSONDecodeError:
            parsed = None

        if isinstance(parsed, dict):
            return ContentSummary(
                summary=str(parsed.get("summary") or ""),
                key_points=_as_str_list(parsed.get("keyPoints", parsed.get("key_points"))),
                tags=_as_str_list(parsed.get("tags")),
                insights=_as_str_list(parsed.get("insights")),
                confidence=_as_confidence(parsed.get("confidence")),
                processing_time=processing_time,
            )

        return ContentSummary(
            summary=response.strip(),
            confidence=0.3,
            processing_time=processing_time,
        )

    def parse_relevance_score(self, response: str) -> float:
        match = _NUMBER.search(response)
        if match:
            return max(0.0, min(1.0, float(match.group(1))))
        return 0.5

    def parse_tags_response(self, response: str) -> list[str]:
        tags = [tag.strip().lower() for tag in re.split(r"[,\n]", response)]
        return [tag for tag in tags if 0 < len(tag) < 50][:8]

    def parse_insights_response(self, response: str) -> list[str]:
        lines = [_LIST_NUMBER.sub("", line).strip() for line in response.split("\n")]
        insights = [line for line in lines if len(line) > 10][:3]
        return insights if insights else [response.strip()]

    def _fix_json(self, text: str) -> str:
        """Try to fix common JSON issues."""
        # Remove trailing commas before } or ]
        return re.sub(r",(\s*[}\]])", r"\1", text)

    def _extract_json(self, text: str) -> str:
        """Extract JSON from a markdown code block or surrounding prose."""
        code_block_match = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
        if code_block_match:
            return self._fix_json(code_block_match.group(1).strip())

        # Outermost braces first, then the first balanced object
        for pattern in (r"\{.*\}", r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}"):
            match = re.search(pattern, text, re.DOTALL)
            if match:
                candidate = self._fix_json(match.group(0))
                try:
                    json.loads(candidate)
                    return candidate
                except json.JSONDecodeError:
                    pass

        return self._fix_json(text.strip())


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _as_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.5
    if confidence <= 0:
        return 0.5
    return min(1.0, confidence)
