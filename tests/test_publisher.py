"""Tests for publishing, site regeneration, archiving and restore."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from github import GithubException

from financehub.models import ArticleStatus
from financehub.output.publisher import (
    REDIRECTS_FILE,
    Publisher,
    add_redirects,
    prune_redirects,
    redirect_line,
    remove_redirects_from,
    rewrite_internal_links,
)

from conftest import NOW

S = ArticleStatus
OLD_URL = "/articles/2024/01/old-post"


@pytest.fixture
def site_dir(tmp_path):
    return tmp_path / "site"


@pytest.fixture
def publisher(manager, site_dir, clock):
    return Publisher(manager, site_dir, clock=clock)


@pytest.fixture
def old_and_linking(store):
    """An old published article plus a recent one that links to it."""
    old = store(
        "Old Post",
        article_id="old",
        status=S.PUBLISHED,
        slug="old-post",
        url=OLD_URL,
        created_at="2024-01-05T00:00:00Z",
        published_at="2024-01-05T00:00:00Z",
    )
    linking = store(
        "Linking Post",
        article_id="new",
        status=S.PUBLISHED,
        slug="linking-post",
        url="/articles/2025/05/linking-post",
        published_at="2025-05-20T00:00:00Z",
        content=f'<p>See <a href="https://smartfinancehub.vip{OLD_URL}.html">this</a>.</p>',
    )
    return old, linking


class TestLinkAndRedirectHelpers:

    @pytest.mark.parametrize(
        "href",
        [
            OLD_URL,
            OLD_URL + ".html",
            OLD_URL.lstrip("/"),
            "https://smartfinancehub.vip" + OLD_URL,
            OLD_URL + "/",
        ],
    )
    def test_rewrite_link_variants(self, href):
        content, count = rewrite_internal_links(
            f"<a href='{href}'>x</a>", OLD_URL, "/archive/2024/01/old-post", base_url="https://smartfinancehub.vip"
        )
        assert count == 1
        assert content == '<a href="/archive/2024/01/old-post">x</a>'

    def test_rewrite_ignores_other_links(self):
        content, count = rewrite_internal_links('<a href="/articles/2024/01/old-post-two">x</a>', OLD_URL, "/new")
        assert count == 0

    def test_redirect_line_format(self):
        line = redirect_line(OLD_URL, "/archive/2024/01/old-post", NOW)
        assert line == "/articles/2024/01/old-post /archive/2024/01/old-post 301 # archived 2025-06-01"

    def test_add_redirects_starts_with_header(self):
        text = add_redirects("", ["/a /b 301 # archived 2025-06-01"])
        assert text.startswith("# Smart Finance Hub Redirects")
        assert text.endswith("/a /b 301 # archived 2025-06-01\n")

    def test_prune_drops_expired_lines(self):
        text = (
            "# header\n"
            "/a /archive/a 301 # archived 2023-01-01\n"
            "/b /archive/b 301 # archived 2024-01-01\n"
        )
        pruned, removed = prune_redirects(text, NOW, 730)
        assert removed == 1
        assert "/a " not in pruned
        assert "/b /archive/b" in pruned
        assert "# header" in pruned

    def test_remove_redirect_for_url(self):
        text = "/a /x 301 # archived 2025-01-01\n/ab /y 301 # archived 2025-01-01\n"
        assert remove_redirects_from(text, "/a") == "/ab /y 301 # archived 2025-01-01\n"


class TestPublishing:

    def test_publish_all_approved_skips_future_schedule(self, publisher, manager, repo, store, site_dir):
        store("Ready Now", article_id="a1", status=S.APPROVED)
        store("Later Article", article_id="a2", status=S.APPROVED, scheduled_for="2025-07-01T00:00:00Z")
        store("Was Due", article_id="a3", status=S.APPROVED, scheduled_for="2025-05-01T00:00:00Z")

        report = publisher.publish_all_approved()

        assert sorted(i.article_id for i in report.items) == ["a1", "a3"]
        assert repo.get("a2").status is S.APPROVED
        article = repo.get("a1")
        assert (site_dir / f"{article.url.strip('/')}.html").exists()
        homepage = (site_dir / "index.html").read_text(encoding="utf-8")
        assert "Ready Now" in homepage
        assert "Later Article" not in homepage
        assert (site_dir / "sitemap.xml").exists()

    def test_nothing_approved_writes_nothing(self, publisher, site_dir):
        report = publisher.publish_all_approved()
        assert report.items == []
        assert not (site_dir / "index.html").exists()

    def test_publish_single_article(self, publisher, store, site_dir):
        store("Single Publish", article_id="a1", status=S.APPROVED)
        article = publisher.publish("a1")
        assert article.status is S.PUBLISHED
        assert "Single Publish" in (site_dir / "articles" / "index.html").read_text(encoding="utf-8")

    def test_commits_through_github_with_prefix(self, manager, store, site_dir, clock):
        github = MagicMock()
        github.commit_files.return_value = ["site/index.html"]
        publisher = Publisher(manager, site_dir, github=github, path_prefix="/site/", clock=clock)
        store(article_id="a1", status=S.APPROVED)

        publisher.publish_all_approved()

        files = github.commit_files.call_args.args[0]
        assert "site/index.html" in files
        assert "site/sitemap.xml" in files
        assert all(path.startswith("site/") for path in files)


    def test_commit_failure_is_recorded_in_report(self, manager, repo, store, site_dir, clock):
        github = MagicMock()
        github.commit_files.side_effect = RuntimeError("GitHub commit failed after 3 attempts")
        publisher = Publisher(manager, site_dir, github=github, clock=clock)
        store(article_id="a1", status=S.APPROVED)

        report = publisher.publish_all_approved()

        assert not report.ok
        assert [(i.article_id, i.ok) for i in report.items] == [("a1", True), (None, False)]
        assert "GitHub commit failed" in report.items[-1].detail
        assert repo.get("a1").status is S.PUBLISHED
        assert (site_dir / "index.html").exists()


class TestArchiving:

    def test_archive_expired_moves_page_and_adds_redirect(self, publisher, repo, site_dir, old_and_linking):
        old_page = site_dir / "articles" / "2024" / "01" / "old-post.html"
        old_page.parent.mkdir(parents=True)
        old_page.write_text("old", encoding="utf-8")
        (site_dir / REDIRECTS_FILE).write_text(
            "# Smart Finance Hub Redirects\n/gone /archive/gone 301 # archived 2023-01-01\n", encoding="utf-8"
        )

        report = publisher.archive_expired()

        assert [i.article_id for i in report.items] == ["old"]
        archived = repo.get("old")
        assert archived.status is S.ARCHIVED
        assert archived.archive_path == "archive/2024/01/old-post.html"
        assert not old_page.exists()
        archive_page = (site_dir / "archive" / "2024" / "01" / "old-post.html").read_text(encoding="utf-8")
        assert "This article was archived in June 2025" in archive_page

        redirects = (site_dir / REDIRECTS_FILE).read_text(encoding="utf-8")
        assert f"{OLD_URL} /archive/2024/01/old-post 301 # archived 2025-06-01" in redirects
        assert "/gone" not in redirects

        assert 'href="/archive/2024/01/old-post"' in repo.get("new").content
        assert "Old Post" not in (site_dir / "index.html").read_text(encoding="utf-8")

    def test_archive_commit_conflict_keeps_per_item_report(self, manager, repo, site_dir, clock, old_and_linking):
        github = MagicMock()
        github.read_file.return_value = ""
        github.commit_files.side_effect = GithubException(409, {"message": "conflict"}, None)
        publisher = Publisher(manager, site_dir, github=github, clock=clock)

        report = publisher.archive_expired()

        assert report.failure_count == 1
        assert report.items[0].article_id == "old"
        assert report.items[0].ok
        assert report.items[1].detail.startswith("Site commit failed")
        assert repo.get("old").status is S.ARCHIVED

    def test_archive_with_no_candidates_is_a_no_op(self, publisher, store, site_dir):
        store(article_id="fresh", status=S.PUBLISHED, published_at="2025-05-01T00:00:00Z")
        report = publisher.archive_expired()
        assert report.items == []
        assert not site_dir.exists()

    def test_restore_reverses_archive(self, publisher, repo, site_dir, old_and_linking):
        publisher.archive_expired()

        article = publisher.restore("old", reason="still relevant")

        assert article.status is S.PUBLISHED
        assert article.url == OLD_URL
        assert not (site_dir / "archive" / "2024" / "01" / "old-post.html").exists()
        assert (site_dir / "articles" / "2024" / "01" / "old-post.html").exists()
        assert OLD_URL not in (site_dir / REDIRECTS_FILE).read_text(encoding="utf-8")
        assert f'href="{OLD_URL}"' in repo.get("new").content

    def test_redirects_read_from_github_when_missing_locally(self, manager, site_dir, clock, old_and_linking):
        github = MagicMock()
        github.read_file.return_value = "/kept /archive/kept 301 # archived 2025-01-01\n"
        github.commit_files.return_value = []
        publisher = Publisher(manager, site_dir, github=github, clock=clock)

        publisher.archive_expired()

        github.read_file.assert_called_once_with(REDIRECTS_FILE)
        files = github.commit_files.call_args.args[0]
        assert files[REDIRECTS_FILE].startswith("/kept /archive/kept")
        assert "articles/2024/01/old-post.html" in github.commit_files.call_args.kwargs["deletions"]
