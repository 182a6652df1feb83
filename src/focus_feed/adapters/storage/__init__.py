"""Storage adapters."""

from focus_feed.adapters.storage.memory_store import InMemoryFeedStore

__all__ = ["InMemoryFeedStore"]
