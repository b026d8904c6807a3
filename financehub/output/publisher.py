"""Publish approved articles, regenerate the site and archive old pages.

Files are always written under the local site directory. When a
``GitHubClient`` is supplied the same files are committed to the site
repository as well (the client itself honours dry run).
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from github import GithubException

from ..models import Article, ArticleStatus
from ..processors.normalize import parse_timestamp, utc_now
from ..utils.logging import get_logger
from ..workflow.manager import WorkflowManager
from ..workflow.repository import PersistenceError
from ..workflow.state import TransitionError
from .github_client import GitHubClient
from .pipeline_reporter import BatchReport
from .site_renderer import SiteRenderer, page_path

logger = get_logger("sfh.output.publisher")

# Failures of a site commit that leave the repository ahead of the site
COMMIT_ERRORS = (RuntimeError, GithubException, OSError)

REDIRECTS_FILE = "_redirects"
REDIRECTS_HEADER = (
    "# Smart Finance Hub Redirects\n"
    "# Format: /old-path /new-path status\n"
    "\n"
)
_ARCHIVED_ON_RE = re.compile(r"# archived (\d{4}-\d{2}-\d{2})")


def archive_url(article: Article) -> str:
    path = article.archive_path or ""
    return "/" + path[: -len(".html")] if path.endswith(".html") else "/" + path


def rewrite_internal_links(content: str, old_url: str, new_url: str, *, base_url: str = "") -> Tuple[str, int]:
    """Point every ``href`` at ``old_url`` (absolute, rooted or relative) to ``new_url``."""
    bare = re.escape(old_url.strip("/"))
    host = re.escape(base_url.rstrip("/")) if base_url else ""
    prefix = f"(?:{host})?/?" if host else "/?"
    pattern = re.compile(rf"href=([\"']){prefix}{bare}(?:\.html)?/?\1", re.IGNORECASE)
    return pattern.subn(f'href="{new_url}"', content)


def redirect_line(old_url: str, new_url: str, when: datetime) -> str:
    return f"{old_url} {new_url} 301 # archived {when:%Y-%m-%d}"


def add_redirects(text: str, lines: Sequence[str]) -> str:
    if not lines:
        return text
    if not text.strip():
        text = REDIRECTS_HEADER
    if not text.endswith("\n"):
        text += "\n"
    return text + "\n".join(lines) + "\n"


def prune_redirects(text: str, now: datetime, expiry_days: int) -> Tuple[str, int]:
    """Drop archive redirects created more than ``expiry_days`` before ``now``."""
    cutoff = (now - timedelta(days=expiry_days)).date()
    kept: List[str] = []
    removed = 0
    for line in text.splitlines():
        match = _ARCHIVED_ON_RE.search(line)
        if match and datetime.strptime(match.group(1), "%Y-%m-%d").date() <= cutoff:
            removed += 1
            continue
        kept.append(line)
    return ("\n".join(kept) + "\n") if kept else "", removed


def remove_redirects_from(text: str, old_url: str) -> str:
    kept = [line for line in text.splitlines() if not line.startswith(f"{old_url} ")]
    return ("\n".join(kept) + "\n") if kept else ""


class Publisher:
    def __init__(
        self,
        manager: WorkflowManager,
        site_dir: Path | str,
        *,
        renderer: Optional[SiteRenderer] = None,
        github: Optional[GitHubClient] = None,
        path_prefix: str = "",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.manager = manager
        self.site_dir = Path(site_dir)
        self.renderer = renderer or SiteRenderer(manager.config)
        self.github = github
        self.path_prefix = path_prefix.strip("/")
        self._clock = clock

    # ---------------- File output -----------------
    def _remote_path(self, path: str) -> str:
        return f"{self.path_prefix}/{path}" if self.path_prefix else path

    def _write_local(self, files: Dict[str, str], deletions: Iterable[str]) -> None:
        for rel, content in files.items():
            target = self.site_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        for rel in deletions:
            (self.site_dir / rel).unlink(missing_ok=True)

    def _commit(self, files: Dict[str, str], deletions: Sequence[str], message: str) -> List[str]:
        self._write_local(files, deletions)
        if self.github is None:
            return sorted(files)
        return self.github.commit_files(
            {self._remote_path(p): c for p, c in files.items()},
            message=message,
            deletions=[self._remote_path(p) for p in deletions],
        )

    def _read_redirects(self) -> str:
        local = self.site_dir / REDIRECTS_FILE
        if local.exists():
            return local.read_text(encoding="utf-8")
        if self.github is not None:
            return self.github.read_file(self._remote_path(REDIRECTS_FILE)) or ""
        return ""

    # ---------------- Site -----------------
    def regenerate_site(
        self,
        *,
        extra_files: Optional[Dict[str, str]] = None,
        deletions: Sequence[str] = (),
        message: str = "Regenerate site",
    ) -> Dict[str, str]:
        """Render the published set and write (and commit) every page."""
        published = self.manager.list(ArticleStatus.PUBLISHED)
        files = self.renderer.render_site(published, self._clock())
        files.update(extra_files or {})
        changed = self._commit(files, deletions, message)
        logger.info(
            "Regenerated site: %d published article(s), %d file(s) changed", len(published), len(changed)
        )
        return files

    def _regenerate_for_report(self, report: BatchReport, message: str, **kwargs) -> None:
        try:
            self.regenerate_site(message=message, **kwargs)
        except COMMIT_ERRORS as exc:
            logger.exception("Site update for %s failed", report.operation)
            report.failed(None, f"Site commit failed: {exc}")

    # ---------------- Publishing -----------------
    def publish(self, article_id: str) -> Article:
        article = self.manager.publish(article_id)
        self.regenerate_site(message=f"Publish article: {article.title}")
        return article

    def publish_all_approved(self, *, respect_schedule: bool = True) -> BatchReport:
        """Publish every approved article; scheduled ones wait until their date."""
        now = self._clock()
        report = BatchReport("publish")
        for article in self.manager.list(ArticleStatus.APPROVED):
            scheduled = parse_timestamp(article.scheduled_for)
            if respect_schedule and scheduled is not None and scheduled > now:
                logger.info("Skipping %s until %s", article.id, article.scheduled_for)
                continue
            try:
                published = self.manager.publish(article.id)
            except (PersistenceError, TransitionError) as exc:
                logger.error("Failed to publish %s: %s", article.id, exc)
                report.failed(article.id, str(exc), title=article.title)
                continue
            report.succeeded(article.id, published.url or "", title=published.title)
        if report.success_count:
            self._regenerate_for_report(report, f"Publish {report.success_count} approved article(s)")
        return report

    # ---------------- Archival -----------------
    def _rewrite_links(self, old_url: str, new_url: str) -> int:
        total = 0
        for status in (ArticleStatus.APPROVED, ArticleStatus.PUBLISHED):
            for article in self.manager.repository.list(status):
                content, count = rewrite_internal_links(
                    article.content, old_url, new_url, base_url=self.manager.config.base_url
                )
                if not count:
                    continue
                article.content = content
                self.manager.repository.save(article)
                total += count
                logger.info("Updated %d link(s) in %s", count, article.id)
        return total

    def archive_expired(self) -> BatchReport:
        """Archive eligible published articles, redirecting their old URLs."""
        now = self._clock()
        report = BatchReport("archive")
        archive_pages: Dict[str, str] = {}
        deletions: List[str] = []
        redirects: List[str] = []

        for candidate in self.manager.archive_candidates():
            old_path = page_path(candidate)
            try:
                article = self.manager.archive(candidate.id, reason="age threshold reached")
                new_url = archive_url(article)
                links = self._rewrite_links(article.url, new_url)
            except (PersistenceError, TransitionError) as exc:
                logger.error("Failed to archive %s: %s", candidate.id, exc)
                report.failed(candidate.id, str(exc), title=candidate.title)
                continue
            archive_pages[article.archive_path] = self.renderer.render_archived_article(article)
            deletions.append(old_path)
            redirects.append(redirect_line(article.url, new_url, now))
            report.succeeded(article.id, f"{article.archive_path} ({links} link(s) updated)", title=article.title)

        text, removed = prune_redirects(self._read_redirects(), now, self.manager.config.archive.redirect_expiry_days)
        if removed:
            logger.info("Removed %d expired redirect(s)", removed)
        if redirects or removed:
            archive_pages[REDIRECTS_FILE] = add_redirects(text, redirects)

        if archive_pages or deletions:
            self._regenerate_for_report(
                report,
                f"Archive {report.success_count} article(s)",
                extra_files=archive_pages,
                deletions=deletions,
            )
        logger.info("Archived %d article(s)", report.success_count)
        return report

    def restore(self, article_id: str, *, reason: str = "manual restore") -> Article:
        """Bring an archived article back to its original URL."""
        article = self.manager.get(article_id)
        old_archive_path = article.archive_path
        old_archive_url = archive_url(article) if old_archive_path else ""
        article = self.manager.restore(article_id, reason=reason)

        extra: Dict[str, str] = {}
        deletions: List[str] = []
        if old_archive_path:
            deletions.append(old_archive_path)
            self._rewrite_links(old_archive_url, article.url)
        redirects = self._read_redirects()
        if redirects and article.url:
            extra[REDIRECTS_FILE] = remove_redirects_from(redirects, article.url)
        self.regenerate_site(extra_files=extra, deletions=deletions, message=f"Restore article: {article.title}")
        return article
