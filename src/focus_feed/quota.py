"""TTL cache and daily request quota in front of the aggregator."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from focus_feed.aggregator import Aggregator
from focus_feed.core import CacheEntry, GatewayResponse, ResponseState, utc_now

logger = logging.getLogger(__name__)


def make_cache_key(
    profile_id: Optional[str] = None, include_items: bool = False, ai_enabled: bool = False
) -> str:
    items = "items" if include_items else "noitems"
    ai = "ai" if ai_enabled else "noai"
    return f"{profile_id or 'all'}_{items}_{ai}"


class QuotaCache:
    """Cached results per request key and fetch counters per profile and UTC day.

    All reads and writes go through one lock; counters reset when the UTC
    date changes.
    """

    def __init__(
        self,
        cache_duration: float = 12 * 3600,
        max_requests_per_day: int = 2,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cache_duration = cache_duration
        self.max_requests_per_day = max_requests_per_day
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._counts: dict[str, tuple[str, int]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Entry for the key regardless of age."""
        async with self._lock:
            return self._entries.get(key)

    async def set(self, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(data=data, timestamp=self.clock(), key=key)
        async with self._lock:
            self._entries[key] = entry
        return entry

    def is_fresh(self, entry: CacheEntry) -> bool:
        return (self.clock() - entry.timestamp).total_seconds() < self.cache_duration

    def age_minutes(self, entry: CacheEntry) -> int:
        return int((self.clock() - entry.timestamp).total_seconds() // 60)

    async def try_acquire(self, quota_key: str) -> bool:
        """Count one fetch if today's quota allows it."""
        async with self._lock:
            count = self._today_count(quota_key)
            if count >= self.max_requests_per_day:
                return False
            self._counts[quota_key] = (self._today(), count + 1)
            return True

    async def usage(self, quota_key: str) -> int:
        async with self._lock:
            return self._today_count(quota_key)

    async def remaining(self, quota_key: str) -> int:
        return max(0, self.max_requests_per_day - await self.usage(quota_key))

    def _today(self) -> str:
        return self.clock().date().isoformat()

    def _today_count(self, quota_key: str) -> int:
        day, count = self._counts.get(quota_key, ("", 0))
        return count if day == self._today() else 0


class AggregatorGateway:
    """Serve cached results, run a counted fetch, or refuse once the quota is spent."""

    def __init__(self, aggregator: Aggregator, cache: QuotaCache) -> None:
        self.aggregator = aggregator
        self.cache = cache
        self._fetch_locks: dict[str, asyncio.Lock] = {}

    async def request(
        self,
        profile_id: Optional[str] = None,
        include_items: bool = False,
        ai_enabled: bool = False,
        force_refresh: bool = False,
    ) -> GatewayResponse:
        """Answer one request.

        Raises:
            ProfileNotFoundError: when ``profile_id`` names no configured profile.
        """
        profile = await self.aggregator.get_profile(profile_id) if profile_id else None
        key = make_cache_key(profile_id, include_items, ai_enabled)
        quota_key = profile_id or "all"
        limit = self.cache.max_requests_per_day

        async with self._fetch_locks.setdefault(key, asyncio.Lock()):
            entry = await self.cache.get(key)

            if not force_refresh and entry is not None and self.cache.is_fresh(entry):
                return GatewayResponse(
                    state=ResponseState.CACHED,
                    data=entry.data,
                    cache_age_minutes=self.cache.age_minutes(entry),
                    remaining_requests=await self.cache.remaining(quota_key),
                    request_count=await self.cache.usage(quota_key),
                    max_requests=limit,
                    message=f"Serving cached data (max {limit} fetches per day per profile)",
                )

            if not force_refresh and not await self.cache.try_acquire(quota_key):
                used = await self.cache.usage(quota_key)
                if entry is not None:
                    logger.info("Quota reached for %s, serving stale cache", quota_key)
                    return GatewayResponse(
                        state=ResponseState.STALE,
                        data=entry.data,
                        cache_age_minutes=self.cache.age_minutes(entry),
                        remaining_requests=0,
                        request_count=used,
                        max_requests=limit,
                        message=f"Daily request limit reached ({used}/{limit}). "
                        "Use a forced refresh to fetch anyway.",
                    )
                logger.warning("Quota reached for %s with no cached data", quota_key)
                return GatewayResponse(
                    state=ResponseState.REJECTED,
                    remaining_requests=0,
                    request_count=used,
                    max_requests=limit,
                    message="Daily request limit reached and no cached data available",
                )

            if profile is not None:
                data = await self.aggregator.fetch_from_profile(profile, include_items, ai_enabled)
            else:
                data = await self.aggregator.fetch_from_all_active_profiles(
                    include_items, ai_enabled
                )
            await self.cache.set(key, data)

            return GatewayResponse(
                state=ResponseState.FRESH,
                data=data,
                cache_age_minutes=0,
                remaining_requests=await self.cache.remaining(quota_key),
                request_count=await self.cache.usage(quota_key),
                max_requests=limit,
                message="Force refreshed data" if force_refresh else "Fresh data fetched",
            )
