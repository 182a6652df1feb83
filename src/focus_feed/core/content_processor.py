"""Relevance scoring, tag enhancement and deduplication for one profile."""

import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from focus_feed.core.entities import FeedItem, FocusProfile, KeywordConfig, utc_now

logger = logging.getLogger(__name__)

TECH_TERMS = [
    "ai", "artificial intelligence", "machine learning", "ml", "deep learning",
    "neural networks", "nlp", "natural language processing", "computer vision",
    "transformers", "chatgpt", "openai", "anthropic", "claude", "gpt", "llm",
    "large language model",
    "react", "vue", "angular", "svelte", "nextjs", "nodejs", "javascript", "typescript",
    "python", "rust", "go", "java", "csharp", "swift", "kotlin",
    "aws", "azure", "gcp", "docker", "kubernetes", "serverless",
    "api", "rest", "graphql", "database", "mongodb", "postgresql", "mysql",
    "startup", "mvp", "product", "user experience", "ux", "ui", "design",
    "revenue", "business model", "growth", "marketing", "saas",
    "blockchain", "crypto", "web3", "defi", "nft",
]

TECH_PATTERNS = [
    re.compile(r"\b\w+\.js\b", re.IGNORECASE),
    re.compile(r"\b\w+\.py\b", re.IGNORECASE),
    re.compile(r"\b\w+\.rs\b", re.IGNORECASE),
    re.compile(r"\b\w+\.go\b", re.IGNORECASE),
    re.compile(r"\b\w+API\b", re.IGNORECASE),
    re.compile(r"\b\w+SDK\b", re.IGNORECASE),
    re.compile(r"\b\w+DB\b", re.IGNORECASE),
]

_WORD = re.compile(r"\w+")

SECONDS_PER_DAY = 24 * 60 * 60


class ContentProcessor:
    """Turn a merged raw item set into a filtered, scored, deduplicated set."""

    def __init__(
        self,
        similarity_threshold: float = 0.8,
        min_content_length: int = 100,
        min_title_length: int = 20,
        insufficient_score: float = 0.1,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.similarity_threshold = similarity_threshold
        self.min_content_length = min_content_length
        self.min_title_length = min_title_length
        self.insufficient_score = insufficient_score
        self.clock = clock

    def calculate_relevance_score(self, item: FeedItem, profile: FocusProfile) -> float:
        """Score an item against a profile's keyword tiers.

        Returns 0 when any exclude keyword matches or any required keyword
        is missing. Otherwise high/medium/low matches earn 3/1/0.5 points
        per occurrence; the sum is divided by 10, capped at 1 and rounded
        to 3 decimals.
        """
        keywords = profile.keywords
        text = item.searchable_text()

        if self._is_excluded(text, keywords):
            return 0.0

        if not self._has_required_keywords(text, keywords):
            return 0.0

        score = 0.0
        score += self._count_matches(text, keywords.high) * 3
        score += self._count_matches(text, keywords.medium) * 1
        score += self._count_matches(text, keywords.low) * 0.5

        normalized = min(score / 10, 1.0)
        return round(normalized, 3)

    def enhance_tags(self, item: FeedItem) -> list[str]:
        """Merge existing tags with technology terms found in the item."""
        text = item.searchable_text()

        extracted: list[str] = []
        for term in TECH_TERMS:
            if term in text:
                extracted.append(re.sub(r"\s+", " ", term))

        for pattern in TECH_PATTERNS:
            for match in pattern.findall(text):
                extracted.append(match.lower().replace(".", ""))

        merged: list[str] = []
        seen: set[str] = set()
        for tag in [t.lower().strip() for t in item.tags] + extracted:
            if len(tag) <= 1 or tag in seen:
                continue
            seen.add(tag)
            merged.append(tag)

        return merged

    def calculate_text_similarity(self, text1: str, text2: str) -> float:
        """Jaccard similarity of the two texts' lower-cased word sets."""
        words1 = set(_WORD.findall(text1.lower()))
        words2 = set(_WORD.findall(text2.lower()))

        union = words1 | words2
        if not union:
            return 0.0
        return len(words1 & words2) / len(union)

    def is_duplicate(self, first: FeedItem, second: FeedItem, threshold: float) -> bool:
        # An empty url says nothing about identity
        if first.url and first.url == second.url:
            return True
        if self.calculate_text_similarity(first.title, second.title) >= threshold:
            return True
        return self.calculate_text_similarity(first.content, second.content) >= threshold

    def detect_duplicates(
        self, items: list[FeedItem], similarity_threshold: Optional[float] = None
    ) -> list[tuple[FeedItem, list[FeedItem]]]:
        """Group duplicates under the first-seen item of each cluster.

        Pairwise O(n^2); fine for batches of a few hundred items.
        """
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold
        groups: list[tuple[FeedItem, list[FeedItem]]] = []
        claimed: set[int] = set()

        for i, current in enumerate(items):
            if i in claimed:
                continue

            duplicates: list[FeedItem] = []
            for j in range(i + 1, len(items)):
                if j in claimed:
                    continue
                if self.is_duplicate(current, items[j], threshold):
                    duplicates.append(items[j])
                    claimed.add(j)

            if duplicates:
                groups.append((current, duplicates))
            claimed.add(i)

        return groups

    def deduplicate_items(
        self, items: list[FeedItem], similarity_threshold: Optional[float] = None
    ) -> list[FeedItem]:
        """Drop every item that duplicates an earlier one."""
        duplicate_ids = {
            id(duplicate)
            for _, duplicates in self.detect_duplicates(items, similarity_threshold)
            for duplicate in duplicates
        }
        return [item for item in items if id(item) not in duplicate_ids]

    def passes_filters(self, item: FeedItem, profile: FocusProfile) -> bool:
        """False when an exclude keyword matches or a required keyword is missing."""
        text = item.searchable_text()
        return not self._is_excluded(text, profile.keywords) and self._has_required_keywords(
            text, profile.keywords
        )

    def has_sufficient_content(self, item: FeedItem) -> bool:
        return (
            len(item.content.strip()) >= self.min_content_length
            or len(item.title.strip()) >= self.min_title_length
        )

    def process_item(self, item: FeedItem, profile: FocusProfile) -> Optional[FeedItem]:
        """Apply one profile to one item; None means the item is dropped."""
        processing = profile.processing

        published_at = item.published_at
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        age_days = (self.clock() - published_at).total_seconds() / SECONDS_PER_DAY
        if age_days > processing.max_age_days:
            return None

        if processing.score_relevance and not self.passes_filters(item, profile):
            return None

        processed = replace(item, tags=list(item.tags), metadata=dict(item.metadata))

        if not self.has_sufficient_content(item):
            logger.debug("Item %s has insufficient content, flagging", item.id)
            processed.metadata["content_quality"] = "insufficient"
            processed.relevance_score = self.insufficient_score
            return processed

        if processing.score_relevance:
            score = self.calculate_relevance_score(item, profile)
            if score < processing.min_relevance_score:
                return None
            processed.relevance_score = score

        if processing.enhance_tags:
            processed.tags = self.enhance_tags(item)

        return processed

    def process_batch(self, items: list[FeedItem], profile: FocusProfile) -> list[FeedItem]:
        """Process every item and sort survivors by relevance, highest first."""
        processed = [p for p in (self.process_item(item, profile) for item in items) if p is not None]
        processed.sort(key=lambda x: x.relevance_score or 0.0, reverse=True)
        return processed

    def _is_excluded(self, text: str, keywords: KeywordConfig) -> bool:
        return any(keyword.lower() in text for keyword in keywords.exclude if keyword)

    def _has_required_keywords(self, text: str, keywords: KeywordConfig) -> bool:
        # Every required keyword must be present
        return all(keyword.lower() in text for keyword in keywords.require if keyword)

    def _count_matches(self, text: str, keywords: list[str]) -> int:
        return sum(text.count(keyword.lower()) for keyword in keywords if keyword)
