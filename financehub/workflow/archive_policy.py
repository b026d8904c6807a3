from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..models import Article
from ..processors.normalize import parse_timestamp
from ..utils.config_loader import ArchiveSettings


@dataclass(slots=True)
class ArchiveDecision:
    eligible: bool
    reason: str
    age_days: Optional[int] = None


class ArchivePolicy:
    """Decide which published articles are old enough to archive.

    Age is measured from ``publishedAt``, falling back to ``createdAt``.
    Evergreen articles (beginner or guide titles with high quality) are never
    auto-archived, and high-priority categories get a longer threshold.
    """

    def __init__(self, settings: Optional[ArchiveSettings] = None) -> None:
        self.settings = settings or ArchiveSettings()

    def is_evergreen(self, article: Article) -> bool:
        title = (article.title or "").lower()
        return article.quality >= self.settings.evergreen_min_quality and any(
            keyword in title for keyword in self.settings.evergreen_keywords
        )

    def is_high_priority(self, article: Article) -> bool:
        return (article.category or "").lower() in {c.lower() for c in self.settings.high_priority_categories}

    def threshold_days(self, article: Article) -> float:
        days = float(self.settings.archive_after_days)
        if self.is_high_priority(article):
            days *= self.settings.high_priority_multiplier
        return days

    def evaluate(self, article: Article, now: datetime) -> ArchiveDecision:
        published = parse_timestamp(article.published_at) or parse_timestamp(article.created_at)
        if published is None:
            return ArchiveDecision(False, "no publish date")
        age = now - published
        age_days = age.days
        if self.is_evergreen(article):
            return ArchiveDecision(False, "evergreen content", age_days)
        threshold = self.threshold_days(article)
        if age <= timedelta(days=threshold):
            label = "high-priority category" if self.is_high_priority(article) else "too recent"
            return ArchiveDecision(False, f"{label} ({age_days}d <= {threshold:g}d)", age_days)
        return ArchiveDecision(True, f"published {age_days} days ago", age_days)
