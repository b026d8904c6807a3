"""Shared fixtures: a fixed clock, a file repository and article builders."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from financehub.models import Article, ArticleStatus, QualityScore, Topic
from financehub.processors.normalize import to_iso
from financehub.utils.config_loader import SiteConfig
from financehub.workflow import FileArticleRepository, WorkflowManager

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def site_config():
    return SiteConfig(
        topics=[
            Topic("emergency-fund", "Building an Emergency Fund", "savings", ["emergency fund", "savings account"], "high"),
            Topic("index-funds", "Index Fund Investing", "investing", ["index funds", "passive investing"], "medium"),
            Topic("zero-budget", "Zero-Based Budgeting", "budgeting", ["zero-based budget"], "low"),
        ],
        long_tail_keywords=["how to build an emergency fund fast", "index funds for beginners"],
    )


@pytest.fixture
def repo(tmp_path):
    return FileArticleRepository(tmp_path / "content")


@pytest.fixture
def manager(repo, site_config, clock):
    return WorkflowManager(repo, config=site_config, clock=clock)


def score(overall: int) -> QualityScore:
    return QualityScore(overall=overall, breakdown={}, weights={})


@pytest.fixture
def make_article():
    """Build an article; ``days_ago`` sets createdAt relative to the fixed clock."""

    counter = {"n": 0}

    def _make(
        title: str = "",
        *,
        article_id: str | None = None,
        status: ArticleStatus = ArticleStatus.DRAFT,
        quality: int = 80,
        days_ago: float = 1,
        **fields,
    ) -> Article:
        counter["n"] += 1
        n = counter["n"]
        created = to_iso(NOW - timedelta(days=days_ago))
        defaults = dict(
            id=article_id or f"art{n:03d}",
            title=title or f"Personal Finance Article {n:03d}",
            meta_description="A practical guide from Smart Finance Hub.",
            content=f"<h1>Article {n}</h1><p>Saving money every month builds security.</p>",
            cta="Subscribe to Smart Finance Hub for weekly tips and strategies delivered to your inbox.",
            category="savings",
            topic=f"topic-{n:03d}",
            status=status,
            quality_score=score(quality),
            created_at=created,
        )
        defaults.update(fields)
        return Article(**defaults)

    return _make


@pytest.fixture
def store(repo, make_article):
    """Create an article and save it straight into the repository."""

    def _store(*args, **kwargs) -> Article:
        article = make_article(*args, **kwargs)
        repo.save(article)
        return article

    return _store
