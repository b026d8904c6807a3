from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..models import Article, ArticleStatus
from ..processors.normalize import parse_timestamp, to_iso
from ..utils.logging import get_logger
from ..workflow.repository import ArticleRepository

logger = get_logger("sfh.analysis.stats")

S = ArticleStatus


@dataclass(slots=True)
class Analytics:
    total_articles: int
    breakdown: Dict[str, int]
    average_quality_score: int
    approval_rate: int
    generated_today: int
    published_this_week: int
    fallback_articles: int
    categories: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalArticles": self.total_articles,
            "breakdown": dict(self.breakdown),
            "averageQualityScore": self.average_quality_score,
            "approvalRate": self.approval_rate,
            "generatedToday": self.generated_today,
            "publishedThisWeek": self.published_this_week,
            "fallbackArticles": self.fallback_articles,
            "categories": dict(self.categories),
        }


@dataclass(slots=True)
class ScheduleEntry:
    article_id: str
    title: str
    scheduled_for: str
    platforms: List[str]
    due: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.article_id,
            "title": self.title,
            "scheduledFor": self.scheduled_for,
            "platforms": list(self.platforms),
            "due": self.due,
        }


def _by_status(repository: ArticleRepository) -> Dict[ArticleStatus, List[Article]]:
    return {status: repository.list(status) for status in S}


def _on_day(value: Optional[str], day) -> bool:
    ts = parse_timestamp(value)
    return ts is not None and ts.date() == day


def _after(value: Optional[str], moment: datetime) -> bool:
    ts = parse_timestamp(value)
    return ts is not None and ts > moment


def calculate_analytics(repository: ArticleRepository, now: datetime) -> Analytics:
    """Counts per status, mean quality of live articles and recent activity.

    The approval rate is the share of reviewed articles (approved, published,
    archived or rejected) that were accepted.
    """
    groups = _by_status(repository)
    live = groups[S.DRAFT] + groups[S.APPROVED] + groups[S.PUBLISHED]
    accepted = len(groups[S.APPROVED]) + len(groups[S.PUBLISHED]) + len(groups[S.ARCHIVED])
    reviewed = accepted + len(groups[S.REJECTED])

    avg_quality = sum(a.quality for a in live) / len(live) if live else 0.0
    approval_rate = accepted / reviewed * 100 if reviewed else 0.0

    everything = [a for articles in groups.values() for a in articles]
    today = now.date()
    week_ago = now - timedelta(days=7)
    generated_today = sum(1 for a in everything if _on_day(a.created_at, today))
    published_this_week = sum(1 for a in groups[S.PUBLISHED] if _after(a.published_at, week_ago))
    categories = Counter(a.category or "uncategorized" for a in groups[S.PUBLISHED])

    return Analytics(
        total_articles=len(everything),
        breakdown={
            "drafts": len(groups[S.DRAFT]),
            "approved": len(groups[S.APPROVED]),
            "published": len(groups[S.PUBLISHED]),
            "rejected": len(groups[S.REJECTED]),
            "archived": len(groups[S.ARCHIVED]),
        },
        average_quality_score=round(avg_quality),
        approval_rate=round(approval_rate),
        generated_today=generated_today,
        published_this_week=published_this_week,
        fallback_articles=sum(1 for a in everything if a.is_fallback_article),
        categories=dict(sorted(categories.items())),
    )


def publishing_schedule(repository: ArticleRepository, now: datetime) -> List[ScheduleEntry]:
    """Approved articles that carry a publish date, soonest first."""
    entries: List[ScheduleEntry] = []
    for article in repository.list(S.APPROVED):
        when = parse_timestamp(article.scheduled_for)
        if when is None:
            continue
        entries.append(
            ScheduleEntry(
                article_id=article.id,
                title=article.title,
                scheduled_for=to_iso(when),
                platforms=article.publish_platforms or ["website"],
                due=when <= now,
            )
        )
    entries.sort(key=lambda e: (e.scheduled_for, e.article_id))
    return entries


def archive_stats(repository: ArticleRepository) -> Dict[str, Any]:
    categories: Counter = Counter()
    years: Counter = Counter()
    archived = repository.list(S.ARCHIVED)
    for article in archived:
        categories[article.category or "uncategorized"] += 1
        when = parse_timestamp(article.archived_at)
        if when is not None:
            years[str(when.year)] += 1
    return {
        "totalArchived": len(archived),
        "categoryBreakdown": dict(sorted(categories.items())),
        "yearlyBreakdown": dict(sorted(years.items())),
    }


def content_stats(repository: ArticleRepository) -> Dict[str, Any]:
    published = repository.list(S.PUBLISHED)
    words = [a.word_count for a in published if a.word_count]
    return {
        "publishedWordCount": sum(words),
        "averageWordCount": round(sum(words) / len(words)) if words else 0,
        "averageReadingTime": round(sum(a.reading_time for a in published) / len(published)) if published else 0,
    }


def system_stats(repository: ArticleRepository, now: datetime, *, started_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Analytics plus archive and content figures for ``/api/stats`` and ``--stats``."""
    stats = calculate_analytics(repository, now).to_dict()
    stats["archive"] = archive_stats(repository)
    stats["content"] = content_stats(repository)
    stats["system"] = {
        "timestamp": to_iso(now),
        "uptimeSeconds": round((now - started_at).total_seconds()) if started_at else None,
    }
    logger.debug("Computed stats for %d article(s)", stats["totalArticles"])
    return stats
