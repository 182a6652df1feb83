"""Core interfaces for adapters and collaborators."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from focus_feed.core.entities import (
    AIModelConfig,
    AIRequest,
    AIResponse,
    ConfigSummary,
    ContentSummary,
    FeedItem,
    FocusProfile,
    SourceConfig,
)


class ItemSource(ABC):
    """Interface for fetching items from one kind of source."""
    
    @abstractmethod
    async def fetch_items(self, source: SourceConfig) -> list[FeedItem]:
        """Fetch and normalize items for the given source configuration.
        
        Raises:
            SourceFetchError: on timeout, non-2xx response or unreadable payload.
        """
        pass


class AIProvider(ABC):
    """Capabilities every generative provider exposes."""
    
    name: str = ""
    
    @abstractmethod
    async def initialize(self, config: AIModelConfig) -> None:
        """Validate configuration and check the provider responds."""
        pass
    
    @abstractmethod
    def is_ready(self) -> bool:
        pass
    
    @abstractmethod
    async def process_request(self, request: AIRequest) -> AIResponse:
        pass
    
    @abstractmethod
    async def generate_summary(
        self, content: str, focus_area: Optional[str] = None
    ) -> ContentSummary:
        pass
    
    @abstractmethod
    async def generate_tags(self, content: str, existing_tags: list[str]) -> list[str]:
        pass
    
    @abstractmethod
    async def extract_insights(self, content: str, focus_area: Optional[str] = None) -> list[str]:
        pass
    
    @abstractmethod
    async def calculate_semantic_relevance(self, content: str, focus_description: str) -> float:
        pass


class ConfigSource(ABC):
    """Read access to validated sources and focus profiles."""
    
    @abstractmethod
    async def load_sources(self) -> list[SourceConfig]:
        pass
    
    @abstractmethod
    async def get_all_profiles(self) -> list[FocusProfile]:
        pass
    
    async def get_active_profiles(self) -> list[FocusProfile]:
        return [p for p in await self.get_all_profiles() if p.enabled]
    
    async def get_profile(self, profile_id: str) -> Optional[FocusProfile]:
        for profile in await self.get_all_profiles():
            if profile.id == profile_id:
                return profile
        return None
    
    async def get_source(self, source_id: str) -> Optional[SourceConfig]:
        for source in await self.load_sources():
            if source.id == source_id:
                return source
        return None
    
    async def get_sources_for_profile(self, profile: FocusProfile) -> list[SourceConfig]:
        """Enabled sources listed by the profile, or all enabled ones if it lists none."""
        enabled = [s for s in await self.load_sources() if s.enabled]
        if profile.sources:
            return [s for s in enabled if s.id in profile.sources]
        return enabled
    
    @abstractmethod
    async def get_summary(self) -> ConfigSummary:
        pass


class FeedStore(ABC):
    """Persistent storage collaborator."""
    
    @abstractmethod
    async def bulk_upsert_items(
        self, items: list[FeedItem], profile_id: Optional[str] = None
    ) -> int:
        """Store items, tolerating duplicate keys. Returns the number written."""
        pass
    
    @abstractmethod
    async def track_engagement(
        self, item_id: str, event_type: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        pass
    
    @abstractmethod
    async def create_aggregation_run(self, metadata: dict[str, Any]) -> str:
        """Open a run record and return its id."""
        pass
    
    @abstractmethod
    async def update_aggregation_run(self, run_id: str, updates: dict[str, Any]) -> None:
        pass
