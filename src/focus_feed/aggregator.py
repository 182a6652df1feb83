"""Aggregation across sources and focus profiles."""

import asyncio
import dataclasses
import logging
import time
from collections import deque
from typing import Any, Optional

from focus_feed.ai_processor import AIProcessor, ranking_score
from focus_feed.core import (
    AggregationResult,
    AggregatorStatus,
    BatchStats,
    ConfigError,
    ConfigSource,
    ConfigSummary,
    ContentProcessor,
    FeedItem,
    FeedStore,
    FetchResult,
    FocusProfile,
    ItemSource,
    ProfileFetchResult,
    ProfileNotFoundError,
    SeenItemStore,
    SourceConfig,
    SourceFetchError,
    SourceNotFoundError,
    SourceType,
    UnsupportedSourceError,
    utc_now,
)

logger = logging.getLogger(__name__)


class RunHistory:
    """In-memory record of recent all-profile runs, newest last."""

    def __init__(self, max_runs: int = 20) -> None:
        self._runs: deque[AggregationResult] = deque(maxlen=max_runs)

    def record(self, result: AggregationResult) -> None:
        self._runs.append(result)

    def last(self) -> Optional[AggregationResult]:
        return self._runs[-1] if self._runs else None

    def all(self) -> list[AggregationResult]:
        return list(self._runs)

    def __len__(self) -> int:
        return len(self._runs)


class Aggregator:
    """Fetch every source of a profile, then score, dedupe and optionally enrich."""

    def __init__(
        self,
        config_source: ConfigSource,
        sources: dict[SourceType, ItemSource],
        content_processor: Optional[ContentProcessor] = None,
        store: Optional[FeedStore] = None,
        ai_processor: Optional[AIProcessor] = None,
        run_history: Optional[RunHistory] = None,
        seen_store: Optional[SeenItemStore] = None,
        source_timeout: float = 30.0,
    ) -> None:
        self.config_source = config_source
        self.sources = sources
        self.content_processor = content_processor or ContentProcessor()
        self.store = store
        self.ai_processor = ai_processor
        self.run_history = run_history or RunHistory()
        self.seen_store = seen_store
        self.source_timeout = source_timeout
        self._started = time.monotonic()

    async def fetch_from_source(self, source: SourceConfig) -> FetchResult:
        """Fetch one source. Any adapter failure becomes a failed result.

        New-item counts are read from the seen store but nothing is marked here;
        profile and run fetches mark their items once they finish.
        """
        start = time.monotonic()
        items: Optional[list[FeedItem]] = None
        error: Optional[str] = None

        try:
            adapter = self.sources.get(source.type)
            if adapter is None:
                raise UnsupportedSourceError(source.type.value)
            items = await asyncio.wait_for(adapter.fetch_items(source), self.source_timeout)
        except asyncio.TimeoutError:
            error = f"Timed out after {self.source_timeout}s"
        except (SourceFetchError, UnsupportedSourceError) as e:
            error = str(e)
        except Exception as e:
            logger.exception("Unexpected error fetching %s", source.id)
            error = f"Unexpected error: {e}"

        if error is not None:
            logger.warning("Fetch failed for %s: %s", source.id, error)
            return FetchResult(
                source_id=source.id,
                success=False,
                item_count=0,
                new_item_count=0,
                duration=time.monotonic() - start,
                timestamp=utc_now(),
                error=error,
            )

        new_count = len(items)
        if self.seen_store is not None:
            new_count = len(self.seen_store.filter_new(items))

        logger.debug("Fetched %d items (%d new) from %s", len(items), new_count, source.id)
        return FetchResult(
            source_id=source.id,
            success=True,
            item_count=len(items),
            new_item_count=new_count,
            duration=time.monotonic() - start,
            timestamp=utc_now(),
            items=items,
        )

    async def fetch_from_profile(
        self,
        profile: FocusProfile,
        include_items: bool = False,
        use_ai: bool = False,
    ) -> ProfileFetchResult:
        """Run one profile end to end. Never raises; problems land in ``errors``."""
        fetched_items: list[FeedItem] = []
        result = await self._guarded_profile(profile, include_items, use_ai, fetched_items)
        self._mark_seen(fetched_items)
        return result

    async def _guarded_profile(
        self,
        profile: FocusProfile,
        include_items: bool,
        use_ai: bool,
        fetched_items: list[FeedItem],
    ) -> ProfileFetchResult:
        try:
            return await self._fetch_profile(profile, include_items, use_ai, fetched_items)
        except Exception as e:
            logger.exception("Profile %s failed", profile.id)
            return _empty_profile_result(profile, [str(e) or type(e).__name__])

    def _mark_seen(self, items: list[FeedItem]) -> None:
        if self.seen_store is not None and items:
            self.seen_store.mark_seen(items)

    async def _fetch_profile(
        self,
        profile: FocusProfile,
        include_items: bool,
        use_ai: bool,
        fetched_items: list[FeedItem],
    ) -> ProfileFetchResult:
        sources = await self.config_source.get_sources_for_profile(profile)
        if not sources:
            return _empty_profile_result(
                profile, [f"No enabled sources found for profile {profile.id}"]
            )

        fetched = await asyncio.gather(*(self.fetch_from_source(s) for s in sources))

        all_items: list[FeedItem] = []
        for result in fetched:
            for item in result.items or []:
                item.metadata = {**item.metadata, "profile_id": profile.id, "source_id": result.source_id}
                all_items.append(item)
        fetched_items.extend(all_items)

        processed: list[FeedItem] = []
        duplicates_removed = 0
        ai_stats: Optional[BatchStats] = None

        if all_items:
            candidates = all_items
            if profile.processing.check_duplicates:
                candidates = self.content_processor.deduplicate_items(all_items)
                duplicates_removed = len(all_items) - len(candidates)

            processed = self.content_processor.process_batch(candidates, profile)

            if use_ai and self.ai_processor is not None and processed:
                processed, ai_stats = await self._enhance(processed, profile)

            await self._store_items(processed, profile)

        scores = [item.relevance_score or 0.0 for item in processed]
        avg_score = sum(scores) / len(scores) if scores else 0.0

        return ProfileFetchResult(
            profile_id=profile.id,
            profile_name=profile.name,
            fetch_results=[_without_items(r) for r in fetched],
            total_items=len(all_items),
            processed_items=len(processed),
            successful_fetches=sum(1 for r in fetched if r.success),
            avg_relevance_score=round(avg_score, 3),
            duplicates_removed=duplicates_removed,
            errors=[f"{r.source_id}: {r.error}" for r in fetched if not r.success and r.error],
            processed_feed_items=processed if include_items else None,
            ai_stats=ai_stats,
        )

    async def _enhance(
        self, items: list[FeedItem], profile: FocusProfile
    ) -> tuple[list[FeedItem], BatchStats]:
        if not self.ai_processor.is_ready():
            await self.ai_processor.initialize()

        batch = await self.ai_processor.process_batch(items, profile)
        # Failed items keep their keyword-only version
        combined = batch.processed + [f.item for f in batch.failed]
        combined.sort(key=ranking_score, reverse=True)
        return combined, batch.stats

    async def _store_items(self, items: list[FeedItem], profile: FocusProfile) -> None:
        if self.store is None or not items:
            return
        try:
            written = await self.store.bulk_upsert_items(items, profile.id)
            logger.info("Stored %d items for profile %s", written, profile.id)
        except Exception as e:
            logger.error("Failed to store items for profile %s: %s", profile.id, e)

    async def fetch_from_all_active_profiles(
        self, include_items: bool = False, use_ai: bool = False
    ) -> AggregationResult:
        """Fetch every enabled profile in parallel and record the run."""
        start = time.monotonic()
        run_id: Optional[str] = None

        try:
            profiles = await self.config_source.get_active_profiles()
            if not profiles:
                return AggregationResult(
                    profiles=[],
                    total_fetches=0,
                    total_items=0,
                    total_errors=0,
                    duration=time.monotonic() - start,
                    timestamp=utc_now(),
                )

            run_id = await self._create_run({"status": "running", "profile_count": len(profiles)})

            if self.seen_store is not None:
                self.seen_store.prune_old()

            fetched_items: list[FeedItem] = []
            results = await asyncio.gather(
                *(self._guarded_profile(p, include_items, use_ai, fetched_items) for p in profiles)
            )
            self._mark_seen(fetched_items)
        except ConfigError as e:
            await self._update_run(
                run_id,
                {"status": "failed", "duration": time.monotonic() - start, "error_message": str(e)},
            )
            self.run_history.record(
                AggregationResult(
                    profiles=[],
                    total_fetches=0,
                    total_items=0,
                    total_errors=1,
                    duration=time.monotonic() - start,
                    timestamp=utc_now(),
                    run_id=run_id,
                )
            )
            raise

        total_fetches = sum(len(r.fetch_results) for r in results)
        total_items = sum(r.total_items for r in results)
        total_errors = sum(len(r.errors) for r in results)
        duration = time.monotonic() - start

        result = AggregationResult(
            profiles=list(results),
            total_fetches=total_fetches,
            total_items=total_items,
            total_errors=total_errors,
            duration=duration,
            timestamp=utc_now(),
            run_id=run_id,
        )

        await self._update_run(
            run_id,
            {
                "status": "completed",
                "total_sources": total_fetches,
                "successful_sources": sum(r.successful_fetches for r in results),
                "total_items": total_items,
                "processed_items": sum(r.processed_items for r in results),
                "duplicates_removed": sum(r.duplicates_removed for r in results),
                "avg_relevance_score": sum(r.avg_relevance_score for r in results) / len(results),
                "duration": duration,
            },
        )

        self.run_history.record(result)
        logger.info(
            "Run finished: %d profiles, %d items, %d errors in %.1fs",
            len(results), total_items, total_errors, duration,
        )
        return result

    async def _create_run(self, metadata: dict[str, Any]) -> Optional[str]:
        if self.store is None:
            return None
        try:
            return await self.store.create_aggregation_run(metadata)
        except Exception as e:
            logger.warning("Failed to create aggregation run record: %s", e)
            return None

    async def _update_run(self, run_id: Optional[str], updates: dict[str, Any]) -> None:
        if self.store is None or run_id is None:
            return
        try:
            await self.store.update_aggregation_run(run_id, updates)
        except Exception as e:
            logger.warning("Failed to update aggregation run record: %s", e)

    async def get_profile(self, profile_id: str) -> FocusProfile:
        profile = await self.config_source.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    async def test_source(self, source_id: str) -> FetchResult:
        """Fetch one source on demand without recording its items as seen."""
        source = await self.config_source.get_source(source_id)
        if source is None:
            raise SourceNotFoundError(source_id)
        return await self.fetch_from_source(source)

    async def get_status(self) -> AggregatorStatus:
        try:
            summary = await self.config_source.get_summary()
            ready = True
        except ConfigError as e:
            logger.warning("Configuration unavailable: %s", e)
            summary = ConfigSummary(0, 0, 0, 0, "unavailable")
            ready = False

        return AggregatorStatus(
            is_ready=ready,
            config=summary,
            last_run=self.run_history.last(),
            uptime=time.monotonic() - self._started,
        )

    def get_last_run_metrics(self) -> Optional[dict[str, Any]]:
        """Summary of the most recent run, or None before the first one."""
        last = self.run_history.last()
        if last is None:
            return None

        fetches = last.total_fetches
        return {
            "summary": {
                "total_fetches": fetches,
                "total_items": last.total_items,
                "total_errors": last.total_errors,
                "duration": last.duration,
                "avg_items_per_source": last.total_items / fetches if fetches else 0,
                "success_rate": (fetches - last.total_errors) / fetches if fetches else 0,
            },
            "profiles": [
                {
                    "id": p.profile_id,
                    "name": p.profile_name,
                    "items": p.total_items,
                    "successful_fetches": p.successful_fetches,
                    "total_sources": len(p.fetch_results),
                    "errors": p.errors,
                }
                for p in last.profiles
            ],
        }

    async def track_engagement(
        self, item_id: str, event_type: str, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        if self.store is None:
            return
        try:
            await self.store.track_engagement(item_id, event_type, metadata)
        except Exception as e:
            logger.error("Failed to track engagement for %s: %s", item_id, e)


def _without_items(result: FetchResult) -> FetchResult:
    return dataclasses.replace(result, items=None)


def _empty_profile_result(profile: FocusProfile, errors: list[str]) -> ProfileFetchResult:
    return ProfileFetchResult(
        profile_id=profile.id,
        profile_name=profile.name,
        fetch_results=[],
        total_items=0,
        processed_items=0,
        successful_fetches=0,
        avg_relevance_score=0.0,
        duplicates_removed=0,
        errors=errors,
    )
