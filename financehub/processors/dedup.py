from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from ..models import Article
from ..utils.logging import get_logger
from .normalize import normalize_title, slugify

logger = get_logger("sfh.processors.dedup")

_topic_sep_re = re.compile(r"[-_\s]+")


class DuplicateContentError(Exception):
    """Raised when an article duplicates one already accepted."""

    def __init__(self, reason: str, *, matched_id: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.matched_id = matched_id


@dataclass(slots=True)
class DuplicateMatch:
    reason: str
    matched_id: str
    similarity: float = 1.0


def jaccard_similarity(a: str, b: str) -> float:
    """Word-set overlap, ignoring words of two characters or fewer."""
    if not a or not b:
        return 0.0
    words_a = {w for w in a.split() if len(w) > 2}
    words_b = {w for w in b.split() if len(w) > 2}
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def _normalize_topic(topic: str | None) -> str:
    return _topic_sep_re.sub(" ", (topic or "").lower()).strip()


class Deduplicator:
    """Detect duplicate or near-duplicate articles against an accepted set.

    Checks, in order:
    - exact normalized title
    - exact slug
    - title word overlap above ``title_threshold``
    - topic word overlap above ``topic_threshold``
    """

    def __init__(
        self,
        existing: Iterable[Article] = (),
        *,
        title_threshold: float = 0.85,
        topic_threshold: float = 0.90,
    ) -> None:
        self.title_threshold = title_threshold
        self.topic_threshold = topic_threshold
        self._titles: Dict[str, str] = {}
        self._slugs: Dict[str, str] = {}
        self._topics: Dict[str, str] = {}
        for article in existing:
            self.add(article)

    def add(self, article: Article) -> None:
        title = normalize_title(article.title)
        if title:
            self._titles.setdefault(title, article.id)
        slug = article.slug or slugify(article.title)
        if slug:
            self._slugs.setdefault(slug, article.id)
        topic = _normalize_topic(article.topic)
        if topic:
            self._topics.setdefault(topic, article.id)

    def find_duplicate(self, article: Article) -> Optional[DuplicateMatch]:
        title = normalize_title(article.title)
        slug = article.slug or slugify(article.title)
        topic = _normalize_topic(article.topic)

        matched = self._titles.get(title)
        if title and matched and matched != article.id:
            return DuplicateMatch("Exact title match", matched)

        matched = self._slugs.get(slug)
        if slug and matched and matched != article.id:
            return DuplicateMatch("Exact slug match", matched)

        if title:
            for existing, other_id in self._titles.items():
                if other_id == article.id:
                    continue
                similarity = jaccard_similarity(title, existing)
                if similarity > self.title_threshold:
                    return DuplicateMatch(f"Similar title ({round(similarity * 100)}%)", other_id, similarity)

        if topic:
            for existing, other_id in self._topics.items():
                if other_id == article.id:
                    continue
                similarity = jaccard_similarity(topic, existing)
                if similarity > self.topic_threshold:
                    return DuplicateMatch(f"Similar topic ({round(similarity * 100)}%)", other_id, similarity)
        return None

    def ensure_unique(self, article: Article) -> None:
        match = self.find_duplicate(article)
        if match is not None:
            logger.info("Article %s duplicates %s: %s", article.id, match.matched_id, match.reason)
            raise DuplicateContentError(match.reason, matched_id=match.matched_id)
