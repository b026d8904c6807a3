"""Tests for the age-based archive policy."""

from datetime import timedelta

import pytest

from financehub.processors.normalize import to_iso
from financehub.utils.config_loader import ArchiveSettings
from financehub.workflow import ArchivePolicy

from conftest import NOW


def published(make_article, days, **fields):
    return make_article(published_at=to_iso(NOW - timedelta(days=days)), **fields)


class TestArchivePolicy:

    @pytest.fixture
    def policy(self):
        return ArchivePolicy()

    def test_old_article_is_eligible(self, policy, make_article):
        decision = policy.evaluate(published(make_article, 400, category="savings"), NOW)
        assert decision.eligible
        assert decision.age_days == 400

    def test_recent_article_is_kept(self, policy, make_article):
        decision = policy.evaluate(published(make_article, 30), NOW)
        assert not decision.eligible
        assert decision.reason.startswith("too recent")

    def test_high_priority_category_gets_longer_threshold(self, policy, make_article):
        decision = policy.evaluate(published(make_article, 410, category="Investing"), NOW)
        assert not decision.eligible
        assert decision.reason.startswith("high-priority category")
        assert policy.evaluate(published(make_article, 560, category="investing"), NOW).eligible

    def test_evergreen_article_is_never_archived(self, policy, make_article):
        article = published(make_article, 2000, title="A Beginner Guide to Budgeting", quality=90)
        decision = policy.evaluate(article, NOW)
        assert not decision.eligible
        assert decision.reason == "evergreen content"

    def test_evergreen_requires_quality(self, policy, make_article):
        article = published(make_article, 400, title="A Beginner Guide to Budgeting", quality=70)
        assert policy.evaluate(article, NOW).eligible

    def test_falls_back_to_created_at(self, policy, make_article):
        assert policy.evaluate(make_article(days_ago=500), NOW).eligible

    def test_no_dates(self, policy, make_article):
        decision = policy.evaluate(make_article(created_at=None), NOW)
        assert not decision.eligible
        assert decision.reason == "no publish date"

    def test_custom_settings(self, make_article):
        policy = ArchivePolicy(ArchiveSettings(archive_after_days=30, high_priority_categories=[]))
        assert policy.evaluate(published(make_article, 31, category="investing"), NOW).eligible
