"""Process-local feed store."""

import logging
import uuid
from typing import Any, Optional

from focus_feed.core import FeedItem, FeedStore, utc_now

logger = logging.getLogger(__name__)


class InMemoryFeedStore(FeedStore):
    """Dict-backed store for items, engagement events and run records."""

    def __init__(self) -> None:
        self.items: dict[str, FeedItem] = {}
        self.item_profiles: dict[str, set[str]] = {}
        self.engagement: list[dict[str, Any]] = []
        self.runs: dict[str, dict[str, Any]] = {}

    async def bulk_upsert_items(
        self, items: list[FeedItem], profile_id: Optional[str] = None
    ) -> int:
        written = 0
        for item in items:
            existing = self.items.get(item.id)
            if existing is not None and existing.ai_processed and not item.ai_processed:
                logger.debug("Keeping AI-enriched copy of %s", item.id)
            else:
                self.items[item.id] = item
                written += 1
            if profile_id:
                self.item_profiles.setdefault(item.id, set()).add(profile_id)
        return written

    async def track_engagement(
        self, item_id: str, event_type: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        self.engagement.append(
            {
                "item_id": item_id,
                "event_type": event_type,
                "metadata": metadata or {},
                "timestamp": utc_now(),
            }
        )

    async def create_aggregation_run(self, metadata: dict[str, Any]) -> str:
        run_id = uuid.uuid4().hex
        self.runs[run_id] = {**metadata, "started_at": utc_now()}
        return run_id

    async def update_aggregation_run(self, run_id: str, updates: dict[str, Any]) -> None:
        if run_id not in self.runs:
            raise KeyError(f"Unknown aggregation run: {run_id}")
        self.runs[run_id].update(updates)
        self.runs[run_id]["updated_at"] = utc_now()

    def get_items(self, profile_id: Optional[str] = None) -> list[FeedItem]:
        if profile_id is None:
            return list(self.items.values())
        return [
            item for item_id, item in self.items.items()
            if profile_id in self.item_profiles.get(item_id, set())
        ]
