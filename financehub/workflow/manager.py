from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..models import Article, ArticleStatus
from ..output.pipeline_reporter import BatchReport
from ..processors.dedup import Deduplicator, DuplicateContentError
from ..processors.normalize import count_words, parse_timestamp, reading_time_minutes, slugify, to_iso, utc_now
from ..processors.quality import QualityScorer
from ..utils.config_loader import SiteConfig
from ..utils.logging import get_logger
from .archive_policy import ArchivePolicy
from .repository import ArticleRepository, PersistenceError
from .state import TransitionError, check_transition

logger = get_logger("sfh.workflow")

S = ArticleStatus

EDITABLE_FIELDS = {
    "title": "title",
    "metaDescription": "meta_description",
    "content": "content",
    "cta": "cta",
    "category": "category",
}
_SCORED_FIELDS = {"title", "meta_description", "content", "cta"}
_EDITABLE_STATUSES = {S.DRAFT, S.APPROVED, S.PUBLISHED}

# Newest-first ordering key per listing
_LIST_SORT: Dict[ArticleStatus, Callable[[Article], Any]] = {
    S.DRAFT: lambda a: (a.quality, a.created_at or ""),
    S.APPROVED: lambda a: a.approved_at or "",
    S.PUBLISHED: lambda a: a.published_at or "",
    S.REJECTED: lambda a: a.rejected_at or "",
    S.ARCHIVED: lambda a: a.archived_at or "",
}


def article_url(article: Article) -> str:
    created = parse_timestamp(article.original_created_at or article.created_at) or utc_now()
    return f"/articles/{created:%Y}/{created:%m}/{article.slug}"


def archive_path(article: Article) -> str:
    published = parse_timestamp(article.published_at or article.created_at) or utc_now()
    return f"archive/{published:%Y}/{published:%m}/{article.slug}.html"


class WorkflowManager:
    """Move articles through draft, approved, published, rejected and archived.

    Every operation loads the article from the repository, validates the
    transition, stamps the matching fields and persists through a single
    ``move`` or ``save``. An invalid transition raises ``TransitionError``
    before anything is written.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        *,
        config: Optional[SiteConfig] = None,
        scorer: Optional[QualityScorer] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.config = config or SiteConfig()
        self.scorer = scorer or QualityScorer(
            self.config.quality_weights, min_word_count=self.config.generation.min_word_count
        )
        self.archive_policy = ArchivePolicy(self.config.archive)
        self._clock = clock

    # ---------------- Helpers -----------------
    def _now_iso(self) -> str:
        return to_iso(self._clock())

    def _load(self, article_id: str) -> Article:
        return self.repository.get(article_id)

    def _transition(self, article: Article, target: ArticleStatus) -> None:
        source = article.status
        check_transition(article.id, source, target)
        article.status = target
        self.repository.move(article, source)

    def _deduplicator(self, statuses: Iterable[ArticleStatus], *, exclude: str = "") -> Deduplicator:
        existing: List[Article] = []
        for status in statuses:
            existing.extend(a for a in self.repository.list(status) if a.id != exclude)
        return Deduplicator(
            existing,
            title_threshold=self.config.dedup.title_threshold,
            topic_threshold=self.config.dedup.topic_threshold,
        )

    def _freeze_identity(self, article: Article) -> None:
        if not article.original_created_at:
            article.original_created_at = article.created_at or self._now_iso()
        if not article.slug:
            article.slug = slugify(article.title) or article.id
        if not article.url:
            article.url = article_url(article)

    def rescore(self, article: Article) -> None:
        article.quality_score = self.scorer.score_article(article)
        article.word_count = count_words(article.content)
        article.reading_time = reading_time_minutes(article.word_count)

    # ---------------- Queries -----------------
    def get(self, article_id: str) -> Article:
        return self._load(article_id)

    def list(self, status: ArticleStatus) -> List[Article]:
        articles = self.repository.list(status)
        articles.sort(key=lambda a: a.id)
        articles.sort(key=_LIST_SORT[status], reverse=True)
        return articles

    # ---------------- Transitions -----------------
    def approve(self, article_id: str, *, reviewer: str = "reviewer", notes: str = "") -> Article:
        """Approve a draft, or reject it when it duplicates approved/published content."""
        article = self._load(article_id)
        check_transition(article.id, article.status, S.APPROVED)

        self._freeze_identity(article)
        try:
            self._deduplicator((S.APPROVED, S.PUBLISHED), exclude=article.id).ensure_unique(article)
        except DuplicateContentError as exc:
            logger.warning("Rejecting duplicate article %s: %s", article.id, exc.reason)
            return self._reject(article, reviewer="deduplication", reason=f"Duplicate content: {exc.reason}")

        article.approved_at = article.approved_at or self._now_iso()
        article.approved_by = reviewer
        if notes:
            article.review_notes = notes
        self._transition(article, S.APPROVED)
        logger.info("Approved article %s (%s)", article.id, article.title)
        return article

    def _reject(self, article: Article, *, reviewer: str, reason: str, notes: str = "") -> Article:
        check_transition(article.id, article.status, S.REJECTED)
        article.rejected_at = article.rejected_at or self._now_iso()
        article.rejected_by = reviewer
        article.rejection_reason = reason
        if notes:
            article.review_notes = notes
        self._transition(article, S.REJECTED)
        logger.info("Rejected article %s: %s", article.id, reason)
        return article

    def reject(
        self, article_id: str, *, reviewer: str = "reviewer", reason: str = "", notes: str = ""
    ) -> Article:
        return self._reject(
            self._load(article_id), reviewer=reviewer, reason=reason or "Quality concerns", notes=notes
        )

    def publish(self, article_id: str) -> Article:
        article = self._load(article_id)
        check_transition(article.id, article.status, S.PUBLISHED)
        self._freeze_identity(article)
        article.published_at = article.published_at or self._now_iso()
        article.published_url = f"{self.config.base_url}{article.url}"
        self._transition(article, S.PUBLISHED)
        logger.info("Published article %s at %s", article.id, article.url)
        return article

    def archive(self, article_id: str, *, reason: str = "age threshold reached") -> Article:
        article = self._load(article_id)
        check_transition(article.id, article.status, S.ARCHIVED)
        self._freeze_identity(article)
        article.archived_at = article.archived_at or self._now_iso()
        article.archive_reason = reason
        article.archive_path = archive_path(article)
        self._transition(article, S.ARCHIVED)
        logger.info("Archived article %s to %s", article.id, article.archive_path)
        return article

    def restore(self, article_id: str, *, reason: str = "manual restore") -> Article:
        """Bring an archived article back; refused while live content duplicates it."""
        article = self._load(article_id)
        check_transition(article.id, article.status, S.PUBLISHED)
        self._deduplicator((S.APPROVED, S.PUBLISHED), exclude=article.id).ensure_unique(article)
        article.restored_at = self._now_iso()
        article.restore_reason = reason
        self._transition(article, S.PUBLISHED)
        logger.info("Restored article %s from archive", article.id)
        return article

    # ---------------- Edits -----------------
    def update(self, article_id: str, changes: Mapping[str, Any], *, editor: str = "reviewer") -> Article:
        """Apply reviewer edits; the quality score is recomputed when scored text changes.

        ``slug`` and ``url`` are never touched, so published links stay stable.
        Retitling approved or published content into a duplicate raises
        ``DuplicateContentError`` before anything is saved.
        """
        article = self._load(article_id)
        if article.status not in _EDITABLE_STATUSES:
            raise TransitionError(article.id, article.status, article.status, "article is not editable")

        changed = set()
        for key, attr in EDITABLE_FIELDS.items():
            if key in changes and changes[key] is not None:
                value = str(changes[key])
                if getattr(article, attr) != value:
                    setattr(article, attr, value)
                    changed.add(attr)
        if not changed:
            return article

        if "title" in changed and article.status in (S.APPROVED, S.PUBLISHED):
            self._deduplicator((S.APPROVED, S.PUBLISHED), exclude=article.id).ensure_unique(article)

        if changed & _SCORED_FIELDS:
            self.rescore(article)
        article.updated_at = self._now_iso()
        article.updated_by = editor
        self.repository.save(article)
        logger.info("Updated article %s fields: %s", article.id, sorted(changed))
        return article

    def schedule(self, article_id: str, publish_date: str, *, platforms: Optional[List[str]] = None) -> Article:
        article = self._load(article_id)
        if article.status is not S.APPROVED:
            raise TransitionError(
                article.id, article.status, S.PUBLISHED, "only approved articles can be scheduled"
            )
        when = parse_timestamp(publish_date)
        if when is None:
            raise ValueError(f"Invalid publish date: {publish_date!r}")
        article.scheduled_for = to_iso(when)
        article.publish_platforms = list(platforms or ["website"])
        self.repository.save(article)
        logger.info("Scheduled article %s for %s", article.id, article.scheduled_for)
        return article

    def remove(self, article_id: str, *, reason: str = "Deleted by reviewer", reviewer: str = "reviewer") -> Article:
        """Take an article out of circulation without deleting its file."""
        article = self._load(article_id)
        if article.status is S.PUBLISHED:
            return self.archive(article_id, reason=reason)
        if article.status in (S.DRAFT, S.APPROVED):
            return self._reject(article, reviewer=reviewer, reason=reason)
        raise TransitionError(article.id, article.status, S.ARCHIVED, "article is already out of circulation")

    # ---------------- Batch operations -----------------
    def deduplicate(self) -> BatchReport:
        """Reject drafts and approved articles that duplicate accepted content.

        Published articles form the initial accepted set; approved articles are
        checked before drafts, oldest first, and each survivor joins the set.
        """
        report = BatchReport("deduplicate")
        dedup = self._deduplicator((S.PUBLISHED,))
        for status in (S.APPROVED, S.DRAFT):
            candidates = sorted(self.repository.list(status), key=lambda a: (a.created_at or "", a.id))
            for article in candidates:
                match = dedup.find_duplicate(article)
                if match is None:
                    dedup.add(article)
                    continue
                try:
                    self._reject(article, reviewer="deduplication", reason=f"Duplicate content: {match.reason}")
                    report.succeeded(article.id, match.reason, title=article.title)
                except PersistenceError as exc:
                    logger.error("Failed to reject duplicate %s: %s", article.id, exc)
                    report.failed(article.id, str(exc), title=article.title)
        logger.info("Deduplication rejected %d article(s)", report.success_count)
        return report

    def process_pending_approvals(self, threshold: Optional[int] = None) -> BatchReport:
        """Approve drafts whose quality score reaches ``threshold``."""
        threshold = self.config.generation.auto_approval_score if threshold is None else threshold
        report = BatchReport("auto_approve")
        for article in self.list(S.DRAFT):
            if article.quality < threshold:
                continue
            try:
                result = self.approve(article.id, reviewer="auto-approval", notes=f"Quality {article.quality} >= {threshold}")
            except (PersistenceError, TransitionError) as exc:
                report.failed(article.id, str(exc), title=article.title)
                continue
            if result.status is S.APPROVED:
                report.succeeded(article.id, f"quality {article.quality}", title=article.title)
            else:
                report.failed(article.id, result.rejection_reason or "rejected", title=article.title)
        return report

    def archive_candidates(self) -> List[Article]:
        now = self._clock()
        candidates = []
        for article in self.repository.list(S.PUBLISHED):
            decision = self.archive_policy.evaluate(article, now)
            logger.debug("Archive check %s: %s", article.id, decision.reason)
            if decision.eligible:
                candidates.append(article)
        return candidates
