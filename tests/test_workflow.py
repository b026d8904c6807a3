"""Tests for the article lifecycle operations."""

import pytest

from financehub.models import ArticleStatus
from financehub.processors.dedup import DuplicateContentError
from financehub.workflow import ALLOWED_TRANSITIONS, TransitionError, can_transition

S = ArticleStatus


def location(repo, article_id):
    return [p.parent.name for p in repo.root.rglob(f"{article_id}.json")]


class TestStateMachine:

    def test_rejected_is_terminal(self):
        assert ALLOWED_TRANSITIONS[S.REJECTED] == frozenset()

    @pytest.mark.parametrize(
        "current,target,allowed",
        [
            (S.DRAFT, S.APPROVED, True),
            (S.DRAFT, S.PUBLISHED, False),
            (S.APPROVED, S.PUBLISHED, True),
            (S.PUBLISHED, S.ARCHIVED, True),
            (S.ARCHIVED, S.PUBLISHED, True),
            (S.PUBLISHED, S.DRAFT, False),
            (S.REJECTED, S.APPROVED, False),
        ],
    )
    def test_allowed_edges(self, current, target, allowed):
        assert can_transition(current, target) is allowed


class TestTransitions:

    def test_approve_draft(self, manager, repo, store):
        store(article_id="d1")
        article = manager.approve("d1", reviewer="alex", notes="looks good")
        assert article.status is S.APPROVED
        assert article.approved_at == "2025-06-01T12:00:00Z"
        assert article.approved_by == "alex"
        assert article.review_notes == "looks good"
        assert article.slug == "personal-finance-article-001"
        assert article.url == "/articles/2025/05/personal-finance-article-001"
        assert location(repo, "d1") == ["approved"]

    def test_approve_duplicate_rejects_instead(self, manager, repo, store):
        store("Emergency Fund Basics", article_id="p1", status=S.PUBLISHED)
        store("Emergency Fund Basics!", article_id="d1")
        article = manager.approve("d1")
        assert article.status is S.REJECTED
        assert article.rejected_by == "deduplication"
        assert article.rejection_reason.startswith("Duplicate content")
        assert location(repo, "d1") == ["rejected"]

    def test_reject_uses_default_reason(self, manager, store):
        store(article_id="d1")
        article = manager.reject("d1", reviewer="sam")
        assert article.status is S.REJECTED
        assert article.rejection_reason == "Quality concerns"
        assert article.rejected_at == "2025-06-01T12:00:00Z"

    def test_invalid_transition_leaves_article_untouched(self, manager, repo, store):
        store(article_id="d1")
        with pytest.raises(TransitionError):
            manager.publish("d1")
        stored = repo.get("d1")
        assert stored.status is S.DRAFT
        assert stored.published_at is None
        assert location(repo, "d1") == ["drafts"]

    def test_rejected_articles_cannot_be_approved(self, manager, store):
        store(article_id="r1", status=S.REJECTED)
        with pytest.raises(TransitionError):
            manager.approve("r1")

    def test_publish_sets_url_and_timestamp(self, manager, repo, store):
        store(article_id="a1", status=S.APPROVED)
        article = manager.publish("a1")
        assert article.status is S.PUBLISHED
        assert article.published_at == "2025-06-01T12:00:00Z"
        assert article.published_url == "https://smartfinancehub.vip" + article.url
        assert location(repo, "a1") == ["published"]

    def test_archive_and_restore(self, manager, repo, store):
        store(article_id="p1", status=S.PUBLISHED, published_at="2024-03-10T08:00:00Z")
        archived = manager.archive("p1", reason="too old")
        assert archived.status is S.ARCHIVED
        assert archived.archive_path == "archive/2024/03/personal-finance-article-001.html"
        assert archived.archive_reason == "too old"
        assert location(repo, "p1") == ["archive"]

        restored = manager.restore("p1", reason="still popular")
        assert restored.status is S.PUBLISHED
        assert restored.restored_at == "2025-06-01T12:00:00Z"
        assert restored.restore_reason == "still popular"
        assert restored.url == archived.url
        assert location(repo, "p1") == ["published"]


    def test_restore_refused_while_same_title_is_live(self, manager, repo, store):
        store("Roth IRA Basics Explained Simply", article_id="old", status=S.PUBLISHED,
              published_at="2024-03-10T08:00:00Z")
        manager.archive("old")
        store("Roth IRA Basics Explained Simply", article_id="new", status=S.APPROVED)
        manager.publish("new")

        with pytest.raises(DuplicateContentError):
            manager.restore("old")

        assert location(repo, "old") == ["archive"]
        assert repo.get("old").restored_at is None


class TestEdits:

    def test_content_change_rescores(self, manager, repo, store):
        store(article_id="d1")
        article = manager.update("d1", {"content": "<h1>New</h1><p>Short body.</p>"}, editor="kim")
        assert article.quality_score.breakdown
        assert article.updated_by == "kim"
        assert article.word_count == 3
        assert repo.get("d1").content == "<h1>New</h1><p>Short body.</p>"

    def test_category_change_keeps_score(self, manager, store):
        store(article_id="d1")
        article = manager.update("d1", {"category": "investing"})
        assert article.category == "investing"
        assert article.quality == 80

    def test_no_op_update_is_not_saved(self, manager, store):
        original = store(article_id="d1")
        article = manager.update("d1", {"title": original.title, "unknown": "x"})
        assert article.updated_at is None

    def test_published_title_edit_keeps_url(self, manager, store):
        store(article_id="a1", status=S.APPROVED)
        url = manager.publish("a1").url
        article = manager.update("a1", {"title": "A Completely Different Headline"})
        assert article.url == url

    def test_retitle_into_duplicate_is_refused(self, manager, repo, store):
        store("Index Fund Investing For Beginners", article_id="a1", status=S.PUBLISHED)
        store("Emergency Savings Explained", article_id="a2", status=S.PUBLISHED)

        with pytest.raises(DuplicateContentError):
            manager.update("a2", {"title": "Index Fund Investing for Beginners!"})

        assert repo.get("a2").title == "Emergency Savings Explained"

    def test_draft_may_share_a_title_until_approval(self, manager, store):
        store("Index Fund Investing For Beginners", article_id="a1", status=S.PUBLISHED)
        store(article_id="d1")
        article = manager.update("d1", {"title": "Index Fund Investing For Beginners"})
        assert article.title == "Index Fund Investing For Beginners"

    def test_rejected_articles_are_not_editable(self, manager, store):
        store(article_id="r1", status=S.REJECTED)
        with pytest.raises(TransitionError):
            manager.update("r1", {"title": "x"})

    def test_schedule_approved_article(self, manager, repo, store):
        store(article_id="a1", status=S.APPROVED)
        article = manager.schedule("a1", "2025-07-01T09:00:00Z")
        assert article.scheduled_for == "2025-07-01T09:00:00Z"
        assert article.publish_platforms == ["website"]
        assert repo.get("a1").status is S.APPROVED

    def test_schedule_rejects_bad_input(self, manager, store):
        store(article_id="a1", status=S.APPROVED)
        store(article_id="d1")
        with pytest.raises(ValueError):
            manager.schedule("a1", "next tuesday")
        with pytest.raises(TransitionError):
            manager.schedule("d1", "2025-07-01")

    @pytest.mark.parametrize(
        "status,expected",
        [(S.PUBLISHED, S.ARCHIVED), (S.DRAFT, S.REJECTED), (S.APPROVED, S.REJECTED)],
    )
    def test_remove_takes_article_out_of_circulation(self, manager, store, status, expected):
        store(article_id="x1", status=status)
        assert manager.remove("x1").status is expected

    def test_remove_twice_is_a_conflict(self, manager, store):
        store(article_id="x1", status=S.REJECTED)
        with pytest.raises(TransitionError):
            manager.remove("x1")


class TestBatchOperations:

    def test_deduplicate_against_published_and_older_drafts(self, manager, repo, store):
        store("Emergency Fund Basics", article_id="p1", status=S.PUBLISHED)
        store("Emergency Fund Basics", article_id="a1", status=S.APPROVED)
        store("Index Funds Explained Simply", article_id="d_old", days_ago=5)
        store("Index Funds Explained Simply", article_id="d_new", days_ago=2)
        store("Paying Off Credit Card Debt", article_id="d_other")

        report = manager.deduplicate()

        assert sorted(i.article_id for i in report.items) == ["a1", "d_new"]
        assert repo.get("a1").status is S.REJECTED
        assert repo.get("d_new").status is S.REJECTED
        assert repo.get("d_old").status is S.DRAFT
        assert repo.get("d_other").status is S.DRAFT

    def test_process_pending_approvals_uses_threshold(self, manager, repo, store):
        store(article_id="hi", quality=90)
        store(article_id="lo", quality=50)
        report = manager.process_pending_approvals()
        assert report.success_count == 1
        assert repo.get("hi").status is S.APPROVED
        assert repo.get("lo").status is S.DRAFT

        report = manager.process_pending_approvals(threshold=40)
        assert repo.get("lo").status is S.APPROVED
        assert report.success_count == 1

    def test_list_drafts_orders_by_quality(self, manager, store):
        store(article_id="a", quality=60)
        store(article_id="b", quality=95)
        store(article_id="c", quality=75)
        assert [a.id for a in manager.list(S.DRAFT)] == ["b", "c", "a"]

    def test_archive_candidates(self, manager, store):
        store(article_id="old", status=S.PUBLISHED, published_at="2024-01-01T00:00:00Z")
        store(article_id="new", status=S.PUBLISHED, published_at="2025-05-01T00:00:00Z")
        assert [a.id for a in manager.archive_candidates()] == ["old"]
