"""Core domain layer."""

from focus_feed.core.content_processor import ContentProcessor
from focus_feed.core.entities import (
    AggregationResult,
    AggregatorStatus,
    AIModelConfig,
    AIProcessingOptions,
    AIRequest,
    AIResponse,
    BatchResult,
    BatchStats,
    CacheEntry,
    ConfigSummary,
    ContentSummary,
    FailedItem,
    FeedItem,
    FetchResult,
    FocusProfile,
    GatewayResponse,
    KeywordConfig,
    ProcessingConfig,
    ProcessingMetadata,
    ProfileFetchResult,
    ResponseState,
    SourceConfig,
    SourceOptions,
    SourceType,
    TokenUsage,
    utc_now,
)
from focus_feed.core.errors import (
    ConfigError,
    FocusFeedError,
    ProfileNotFoundError,
    ProviderError,
    ProviderNotReadyError,
    RateLimitError,
    SourceFetchError,
    SourceNotFoundError,
    UnsupportedSourceError,
)
from focus_feed.core.interfaces import AIProvider, ConfigSource, FeedStore, ItemSource
from focus_feed.core.seen_store import SeenItemStore

__all__ = [
    "AggregationResult",
    "AggregatorStatus",
    "AIModelConfig",
    "AIProcessingOptions",
    "AIProvider",
    "AIRequest",
    "AIResponse",
    "BatchResult",
    "BatchStats",
    "CacheEntry",
    "ConfigError",
    "ConfigSource",
    "ConfigSummary",
    "ContentProcessor",
    "ContentSummary",
    "FailedItem",
    "FeedItem",
    "FeedStore",
    "FetchResult",
    "FocusFeedError",
    "FocusProfile",
    "GatewayResponse",
    "ItemSource",
    "KeywordConfig",
    "ProcessingConfig",
    "ProcessingMetadata",
    "ProfileFetchResult",
    "ProfileNotFoundError",
    "ProviderError",
    "ProviderNotReadyError",
    "RateLimitError",
    "ResponseState",
    "SeenItemStore",
    "SourceConfig",
    "SourceFetchError",
    "SourceNotFoundError",
    "SourceOptions",
    "SourceType",
    "TokenUsage",
    "UnsupportedSourceError",
    "utc_now",
]
