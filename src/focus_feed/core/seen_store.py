"""Rolling record of item ids already fetched, for cross-run new-item counts."""

import hashlib
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

import yaml

from focus_feed.core.entities import FeedItem, utc_now

logger = logging.getLogger(__name__)


class SeenItemStore:
    """Track item id hashes with the date they were first seen.

    The map is kept in memory and mirrored to a single YAML file when a
    path is given. Entries older than ``retention_days`` are pruned.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        retention_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.path = path
        self.retention_days = retention_days
        self.clock = clock
        self._seen: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            self._seen = {str(k): str(v) for k, v in (data.get("seen") or {}).items()}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not read seen-item store %s: %s", self.path, e)

    def _save(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.dump(
                    {"updated": self.clock().isoformat(), "seen": self._seen},
                    f,
                    allow_unicode=True,
                    default_flow_style=False,
                    sort_keys=True,
                )
        except OSError as e:
            logger.warning("Could not save seen-item store %s: %s", self.path, e)

    @staticmethod
    def _key(item: FeedItem) -> str:
        return hashlib.md5(f"{item.source.value}:{item.id}".encode()).hexdigest()

    def is_seen(self, item: FeedItem) -> bool:
        return self._key(item) in self._seen

    def filter_new(self, items: list[FeedItem]) -> list[FeedItem]:
        """Items whose ids were not recorded by an earlier call to mark_seen."""
        return [item for item in items if not self.is_seen(item)]

    def mark_seen(self, items: list[FeedItem]) -> None:
        today = self.clock().date().isoformat()
        changed = False
        for item in items:
            key = self._key(item)
            if key not in self._seen:
                self._seen[key] = today
                changed = True
        if changed:
            self._save()

    def prune_old(self, days: Optional[int] = None) -> int:
        """Remove entries first seen more than N days ago.

        Returns:
            Number of entries removed
        """
        days = self.retention_days if days is None else days
        today = self.clock().date()
        stale = []
        for key, seen_on in self._seen.items():
            try:
                if (today - date.fromisoformat(seen_on)).days > days:
                    stale.append(key)
            except ValueError:
                stale.append(key)

        for key in stale:
            del self._seen[key]
        if stale:
            self._save()
        return len(stale)

    def get_stats(self) -> dict:
        return {
            "total_seen": len(self._seen),
            "retention_days": self.retention_days,
            "path": str(self.path) if self.path else None,
        }
