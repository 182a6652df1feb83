"""AI enhancement of processed feed items."""

import asyncio
import dataclasses
import logging
import time
from typing import Any, Optional

from focus_feed.adapters.llm import BaseAIProvider, ClaudeProvider, MockAIProvider
from focus_feed.config import Settings
from focus_feed.core import (
    AIProcessingOptions,
    BatchResult,
    BatchStats,
    ConfigError,
    ContentSummary,
    FailedItem,
    FeedItem,
    FocusProfile,
    ProcessingMetadata,
    ProviderError,
    ProviderNotReadyError,
)

logger = logging.getLogger(__name__)

DEFAULT_FOCUS = "general technology trends"
COLLECTION_CONTENT_LIMIT = 8000
KEYWORD_WEIGHT = 0.4
SEMANTIC_WEIGHT = 0.6


class AIProcessor:
    """Summaries, tags, insights and semantic scores through one active provider.

    The real provider is preferred when an API key is configured and its
    liveness check succeeds; the mock provider is always initialized and
    takes over otherwise. The choice is fixed after ``initialize()``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        claude_provider: Optional[BaseAIProvider] = None,
        mock_provider: Optional[BaseAIProvider] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.options = self.settings.processing_options()
        self.cost_per_token = self.settings.ai.cost_per_token
        self._claude = claude_provider
        self._mock = mock_provider
        self.providers: dict[str, BaseAIProvider] = {}
        self.models: dict[str, str] = {}
        self.active_provider: Optional[BaseAIProvider] = None

    async def initialize(self) -> None:
        """Initialize providers and pick the active one."""
        if self._claude is not None or self.settings.anthropic_api_key:
            claude = self._claude or ClaudeProvider.from_settings(self.settings)
            model_config = self.settings.claude_model_config()
            try:
                await claude.initialize(model_config)
            except (ConfigError, ProviderError) as e:
                logger.warning("Failed to initialize Anthropic provider: %s", e)
            else:
                self.providers[claude.name] = claude
                self.models[claude.name] = model_config.model
                self.active_provider = claude
                logger.info("Anthropic provider initialized (%s)", model_config.model)

        mock = self._mock or MockAIProvider(
            min_delay=self.settings.mock.min_delay,
            max_delay=self.settings.mock.max_delay,
        )
        mock_config = self.settings.mock_model_config()
        await mock.initialize(mock_config)
        self.providers[mock.name] = mock
        self.models[mock.name] = mock_config.model

        if self.active_provider is None:
            self.active_provider = mock
            logger.info("Using mock AI provider (no API key configured)")

    def is_ready(self) -> bool:
        return self.active_provider is not None and self.active_provider.is_ready()

    @property
    def active_provider_name(self) -> str:
        return self.active_provider.name if self.active_provider else "none"

    def options_for(self, profile: Optional[FocusProfile]) -> AIProcessingOptions:
        """Default options with the profile's processing switches applied."""
        if profile is None:
            return self.options
        return dataclasses.replace(
            self.options,
            generate_summary=profile.processing.generate_summary,
            enhance_tags=profile.processing.enhance_tags,
            extract_insights=profile.processing.extract_insights,
            calculate_semantic_score=profile.processing.calculate_semantic_score,
        )

    async def process_item(
        self,
        item: FeedItem,
        profile: Optional[FocusProfile] = None,
        options: Optional[AIProcessingOptions] = None,
    ) -> FeedItem:
        """Enhance one item. Provider failures yield an error-marked copy."""
        if not self.is_ready():
            raise ProviderNotReadyError("AI processor not ready")

        provider = self.active_provider
        opts = options or self.options_for(profile)
        focus = profile.description if profile and profile.description else None
        start = time.monotonic()

        enhanced = dataclasses.replace(item, tags=list(item.tags), metadata=dict(item.metadata))
        try:
            if opts.generate_summary:
                summary = await provider.generate_summary(item.content, focus)
                summary.relevance_score = item.relevance_score
                enhanced.ai_summary = summary

            if opts.enhance_tags:
                ai_tags = await provider.generate_tags(item.content, item.tags)
                enhanced.ai_tags = ai_tags
                enhanced.tags = list(dict.fromkeys(item.tags + ai_tags))

            if opts.extract_insights:
                enhanced.ai_insights = await provider.extract_insights(item.content, focus)

            if opts.calculate_semantic_score and focus:
                enhanced.semantic_score = await provider.calculate_semantic_relevance(
                    item.content, focus
                )
        except ProviderError as e:
            logger.warning("AI processing failed for item %s: %s", item.id, e)
            return dataclasses.replace(
                item,
                processing_metadata=ProcessingMetadata(
                    provider=provider.name,
                    model="error",
                    processing_time=time.monotonic() - start,
                    confidence=0.0,
                    error=str(e),
                ),
            )

        enhanced.processing_metadata = ProcessingMetadata(
            provider=provider.name,
            model=self.models.get(provider.name, "unknown"),
            processing_time=time.monotonic() - start,
            confidence=enhanced.ai_summary.confidence if enhanced.ai_summary else 0.7,
        )
        enhanced.ai_processed = True
        return enhanced

    async def process_batch(
        self,
        items: list[FeedItem],
        profile: Optional[FocusProfile] = None,
        options: Optional[AIProcessingOptions] = None,
    ) -> BatchResult:
        """Process items in chunks of ``max_concurrency`` with a pause between chunks."""
        opts = options or self.options_for(profile)
        start = time.monotonic()
        tokens_before = self._total_tokens()

        size = max(1, opts.max_concurrency)
        chunks = [items[i:i + size] for i in range(0, len(items), size)]

        processed: list[FeedItem] = []
        failed: list[FailedItem] = []

        for index, chunk in enumerate(chunks):
            outcomes = await asyncio.gather(
                *(self._process_with_timeout(item, profile, opts) for item in chunk)
            )
            for item, outcome in zip(chunk, outcomes):
                if isinstance(outcome, FeedItem):
                    processed.append(outcome)
                else:
                    failed.append(FailedItem(item=item, error=outcome))

            if index < len(chunks) - 1 and opts.batch_delay > 0:
                await asyncio.sleep(opts.batch_delay)

        item_times = [
            p.processing_metadata.processing_time for p in processed if p.processing_metadata
        ]
        tokens = self._total_tokens() - tokens_before

        processed.sort(key=ranking_score, reverse=True)

        return BatchResult(
            processed=processed,
            failed=failed,
            stats=BatchStats(
                total_items=len(items),
                successful_items=len(processed),
                failed_items=len(failed),
                total_processing_time=time.monotonic() - start,
                average_processing_time=sum(item_times) / len(item_times) if item_times else 0.0,
                total_tokens_used=tokens,
                total_cost=self.estimate_cost(tokens),
            ),
        )

    async def _process_with_timeout(
        self, item: FeedItem, profile: Optional[FocusProfile], opts: AIProcessingOptions
    ) -> FeedItem | str:
        """Enhanced item, or an error message for the failed list."""
        try:
            return await asyncio.wait_for(self.process_item(item, profile, opts), opts.timeout)
        except asyncio.TimeoutError:
            logger.warning("AI processing timed out for item %s", item.id)
            return f"Processing timed out after {opts.timeout}s"
        except ProviderError as e:
            return str(e)

    async def get_enhanced_relevance_score(
        self,
        item: FeedItem,
        keyword_score: float,
        profile: Optional[FocusProfile] = None,
    ) -> float:
        """Blend keyword and semantic relevance; keyword score alone on failure."""
        if profile is None or not profile.description or not self.is_ready():
            return keyword_score

        try:
            semantic = await self.active_provider.calculate_semantic_relevance(
                item.content, profile.description
            )
        except ProviderError as e:
            logger.warning("Semantic scoring failed, using keyword score: %s", e)
            return keyword_score

        return min(1.0, keyword_score * KEYWORD_WEIGHT + semantic * SEMANTIC_WEIGHT)

    async def generate_collection_summary(
        self, items: list[FeedItem], profile: Optional[FocusProfile] = None
    ) -> ContentSummary:
        if not self.is_ready():
            raise ProviderNotReadyError("AI processor not ready")

        content = "\n\n".join(f"{item.title}: {item.content}" for item in items)
        focus = profile.description if profile and profile.description else DEFAULT_FOCUS
        return await self.active_provider.generate_summary(
            content[:COLLECTION_CONTENT_LIMIT], focus
        )

    def estimate_cost(self, tokens: int) -> float:
        return tokens * self.cost_per_token

    def get_stats(self) -> dict[str, Any]:
        return {
            "providers_ready": sum(1 for p in self.providers.values() if p.is_ready()),
            "active_provider": self.active_provider_name,
            "total_requests": sum(p.request_count for p in self.providers.values()),
            "total_tokens": self._total_tokens(),
        }

    def _total_tokens(self) -> int:
        return sum(p.total_tokens for p in self.providers.values())


def ranking_score(item: FeedItem) -> float:
    if item.semantic_score is not None:
        return item.semantic_score
    return item.relevance_score or 0.0
