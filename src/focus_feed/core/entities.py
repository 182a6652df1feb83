"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class SourceType(str, Enum):
    """Kind of upstream content source."""
    
    RSS = "rss"
    GITHUB = "github"
    HN = "hn"
    TWITTER = "twitter"
    REDDIT = "reddit"
    NEWSLETTER = "newsletter"


@dataclass
class ContentSummary:
    """Structured output of an AI summary pass."""
    
    summary: str
    key_points: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    confidence: float = 0.5
    processing_time: float = 0.0
    relevance_score: Optional[float] = None


@dataclass
class ProcessingMetadata:
    """How an item was enriched."""
    
    provider: str
    model: str
    processing_time: float
    confidence: float
    error: Optional[str] = None


@dataclass
class FeedItem:
    """Normalized item produced by every source adapter."""
    
    id: str
    title: str
    content: str
    url: str
    author: str
    published_at: datetime
    source: SourceType
    source_url: str
    tags: list[str] = field(default_factory=list)
    relevance_score: Optional[float] = None
    source_name: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    
    # AI enrichment, written at most once per pass
    ai_summary: Optional[ContentSummary] = None
    ai_tags: Optional[list[str]] = None
    ai_insights: Optional[list[str]] = None
    semantic_score: Optional[float] = None
    processing_metadata: Optional[ProcessingMetadata] = None
    ai_processed: bool = False
    
    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Item id cannot be empty")
    
    def searchable_text(self) -> str:
        """Lower-cased title, content and tags joined by spaces."""
        return " ".join([self.title, self.content, " ".join(self.tags)]).lower()
    
    @property
    def is_insufficient(self) -> bool:
        return self.metadata.get("content_quality") == "insufficient"


@dataclass
class SourceOptions:
    """Source-specific settings."""
    
    user_agent: Optional[str] = None
    timeout: Optional[float] = None
    access_token: Optional[str] = None
    query: Optional[str] = None
    language: Optional[str] = None
    since: str = "daily"
    count: int = 10
    headers: dict[str, str] = field(default_factory=dict)
    
    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SourceOptions":
        data = data or {}
        timeout = data.get("timeout")
        if timeout is not None and timeout > 1000:
            # Stored in milliseconds by older configs
            timeout = timeout / 1000
        return cls(
            user_agent=data.get("user_agent", data.get("userAgent")),
            timeout=timeout,
            access_token=data.get("access_token", data.get("accessToken")),
            query=data.get("query"),
            language=data.get("language"),
            since=data.get("since") or "daily",
            count=int(data.get("count", 10)),
            headers=dict(data.get("headers") or {}),
        )


@dataclass
class SourceConfig:
    """Configuration for a single content source."""
    
    id: str
    name: str
    type: SourceType
    url: str
    fetch_interval: int = 60
    weight: float = 1.0
    enabled: bool = True
    options: SourceOptions = field(default_factory=SourceOptions)
    
    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Source ID is required")
        if not self.name:
            raise ValueError("Source name is required")
        if not isinstance(self.type, SourceType):
            self.type = SourceType(self.type)
        if self.fetch_interval < 1:
            raise ValueError("Fetch interval must be at least 1 minute")
        if not 0 <= self.weight <= 1:
            raise ValueError("Weight must be between 0 and 1")
    
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceConfig":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=SourceType(data.get("type")),
            url=data.get("url", ""),
            fetch_interval=int(data.get("fetch_interval", data.get("fetchInterval", 60))),
            weight=float(data.get("weight", 1.0)),
            enabled=bool(data.get("enabled", True)),
            options=SourceOptions.from_dict(data.get("options", data.get("config"))),
        )


@dataclass
class KeywordConfig:
    """Tiered boost lists and hard filters."""
    
    high: list[str] = field(default_factory=list)
    medium: list[str] = field(default_factory=list)
    low: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    require: list[str] = field(default_factory=list)
    
    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "KeywordConfig":
        data = data or {}
        boost = data.get("boost") or {}
        filters = data.get("filter") or {}
        return cls(
            high=list(boost.get("high") or []),
            medium=list(boost.get("medium") or []),
            low=list(boost.get("low") or []),
            exclude=list(filters.get("exclude") or []),
            require=list(filters.get("require") or []),
        )


@dataclass
class ProcessingConfig:
    """Per-profile processing flags."""
    
    generate_summary: bool = True
    enhance_tags: bool = True
    score_relevance: bool = True
    check_duplicates: bool = True
    min_relevance_score: float = 0.0
    max_age_days: float = 30
    extract_insights: bool = True
    calculate_semantic_score: bool = True
    
    def __post_init__(self) -> None:
        if not 0 <= self.min_relevance_score <= 1:
            raise ValueError("min_relevance_score must be between 0 and 1")
        if self.max_age_days < 1:
            raise ValueError("max_age_days must be at least 1")
    
    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ProcessingConfig":
        data = data or {}
        
        def pick(snake: str, camel: str, default: Any) -> Any:
            return data.get(snake, data.get(camel, default))
        
        return cls(
            generate_summary=pick("generate_summary", "generateSummary", True),
            enhance_tags=pick("enhance_tags", "enhanceTags", True),
            score_relevance=pick("score_relevance", "scoreRelevance", True),
            check_duplicates=pick("check_duplicates", "checkDuplicates", True),
            min_relevance_score=float(pick("min_relevance_score", "minRelevanceScore", 0.0)),
            max_age_days=float(pick("max_age_days", "maxAgeDays", 30)),
            extract_insights=pick("extract_insights", "extractInsights", True),
            calculate_semantic_score=pick(
                "calculate_semantic_score", "calculateSemanticScore", True
            ),
        )


@dataclass
class FocusProfile:
    """Named filter and scoring configuration for one topic of interest."""
    
    id: str
    name: str
    description: str = ""
    weight: float = 1.0
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    sources: list[str] = field(default_factory=list)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    enabled: bool = True
    
    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Profile ID is required")
        if not self.name:
            raise ValueError("Profile name is required")
        if not 0 <= self.weight <= 1:
            raise ValueError("Weight must be between 0 and 1")
    
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FocusProfile":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            weight=float(data.get("weight", 1.0)),
            keywords=KeywordConfig.from_dict(data.get("keywords")),
            sources=list(data.get("sources") or []),
            processing=ProcessingConfig.from_dict(data.get("processing")),
            enabled=bool(data.get("enabled", True)),
        )


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching a single source."""
    
    source_id: str
    success: bool
    item_count: int
    new_item_count: int
    duration: float
    timestamp: datetime
    error: Optional[str] = None
    items: Optional[list[FeedItem]] = None


@dataclass(frozen=True)
class ProfileFetchResult:
    """Outcome of fetching and processing every source of one profile."""
    
    profile_id: str
    profile_name: str
    fetch_results: list[FetchResult]
    total_items: int
    processed_items: int
    successful_fetches: int
    avg_relevance_score: float
    duplicates_removed: int
    errors: list[str]
    processed_feed_items: Optional[list[FeedItem]] = None
    ai_stats: Optional["BatchStats"] = None


@dataclass(frozen=True)
class AggregationResult:
    """Outcome of one run across all active profiles."""
    
    profiles: list[ProfileFetchResult]
    total_fetches: int
    total_items: int
    total_errors: int
    duration: float
    timestamp: datetime
    run_id: Optional[str] = None


@dataclass(frozen=True)
class ConfigSummary:
    sources_count: int
    enabled_sources_count: int
    profiles_count: int
    active_profiles_count: int
    location: str


@dataclass(frozen=True)
class AggregatorStatus:
    is_ready: bool
    config: ConfigSummary
    last_run: Optional[AggregationResult]
    uptime: float


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class AIRequest:
    """Provider-agnostic generation request."""
    
    prompt: str
    content: str
    max_tokens: int = 300
    temperature: float = 0.3


@dataclass
class AIResponse:
    """Provider-agnostic generation response."""
    
    content: str
    usage: TokenUsage
    model: str
    provider: str
    duration: float = 0.0


@dataclass
class FailedItem:
    item: FeedItem
    error: str


@dataclass
class BatchStats:
    total_items: int
    successful_items: int
    failed_items: int
    total_processing_time: float
    average_processing_time: float
    total_tokens_used: int
    total_cost: float


@dataclass
class BatchResult:
    """Outcome of an AI enhancement batch."""
    
    processed: list[FeedItem]
    failed: list[FailedItem]
    stats: BatchStats


@dataclass
class CacheEntry:
    """Cached orchestrator output for one request key."""
    
    data: Any
    timestamp: datetime
    key: str


class ResponseState(str, Enum):
    """How a gateway request was answered."""
    
    FRESH = "fresh"
    CACHED = "cached"
    STALE = "stale"
    REJECTED = "rejected"


@dataclass
class GatewayResponse:
    """Answer of the cache and quota gateway."""
    
    state: ResponseState
    data: Any = None
    cache_age_minutes: Optional[int] = None
    remaining_requests: Optional[int] = None
    request_count: int = 0
    max_requests: int = 0
    message: str = ""
    
    @property
    def cached(self) -> bool:
        return self.state in (ResponseState.CACHED, ResponseState.STALE)
    
    @property
    def stale(self) -> bool:
        return self.state == ResponseState.STALE
    
    @property
    def quota_exceeded(self) -> bool:
        return self.state == ResponseState.REJECTED


@dataclass
class AIModelConfig:
    """Model settings handed to a provider at initialize()."""
    
    provider: str
    model: str
    max_tokens: int = 500
    temperature: float = 0.3


@dataclass
class AIProcessingOptions:
    """Which enrichment steps run and how batches are paced."""
    
    generate_summary: bool = True
    enhance_tags: bool = True
    extract_insights: bool = True
    calculate_semantic_score: bool = True
    max_concurrency: int = 3
    timeout: float = 30.0
    batch_delay: float = 1.0
