"""Article storage, one JSON file per article in a per-status directory.

The status of an article is both a field in its record and the directory
that holds its file. A move writes the destination first and removes the
source only after that write succeeded, so an article is never lost; if the
source cannot be removed the destination is rolled back.
"""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from ..models import Article, ArticleStatus
from ..utils.logging import get_logger

logger = get_logger("sfh.workflow.repository")

STATUS_DIRS: Dict[ArticleStatus, str] = {
    ArticleStatus.DRAFT: "drafts",
    ArticleStatus.APPROVED: "approved",
    ArticleStatus.PUBLISHED: "published",
    ArticleStatus.REJECTED: "rejected",
    ArticleStatus.ARCHIVED: "archive",
}

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class PersistenceError(Exception):
    """Raised when an article file cannot be read or written."""


class ArticleNotFoundError(LookupError):
    def __init__(self, article_id: str) -> None:
        super().__init__(f"Article not found: {article_id}")
        self.article_id = article_id


class ArticleRepository(ABC):
    @abstractmethod
    def find(self, article_id: str) -> Optional[Tuple[Article, ArticleStatus]]:
        """Return the article and the status directory holding it, or None."""

    @abstractmethod
    def list(self, status: ArticleStatus) -> List[Article]:
        """Return every article stored under ``status``."""

    @abstractmethod
    def save(self, article: Article) -> None:
        """Write the article under its current status."""

    @abstractmethod
    def move(self, article: Article, from_status: ArticleStatus) -> None:
        """Store ``article`` under ``article.status`` and remove it from ``from_status``."""

    def get(self, article_id: str) -> Article:
        found = self.find(article_id)
        if found is None:
            raise ArticleNotFoundError(article_id)
        return found[0]

    def list_all(self) -> Iterator[Article]:
        for status in STATUS_DIRS:
            yield from self.list(status)


class FileArticleRepository(ArticleRepository):
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        for dirname in STATUS_DIRS.values():
            (self.root / dirname).mkdir(parents=True, exist_ok=True)

    def _path(self, status: ArticleStatus, article_id: str) -> Path:
        if not _SAFE_ID_RE.match(article_id or ""):
            raise ArticleNotFoundError(article_id)
        return self.root / STATUS_DIRS[status] / f"{article_id}.json"

    @staticmethod
    def _read(path: Path) -> Article:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc
        try:
            return Article.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Invalid article record {path}: {exc}") from exc

    @staticmethod
    def _write(path: Path, article: Article) -> None:
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            tmp.write_text(json.dumps(article.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc

    def find(self, article_id: str) -> Optional[Tuple[Article, ArticleStatus]]:
        for status in STATUS_DIRS:
            path = self._path(status, article_id)
            if path.exists():
                article = self._read(path)
                # Directory wins over a stale status field
                article.status = status
                return article, status
        return None

    def list(self, status: ArticleStatus) -> List[Article]:
        articles: List[Article] = []
        for path in sorted((self.root / STATUS_DIRS[status]).glob("*.json")):
            try:
                article = self._read(path)
            except PersistenceError as exc:
                logger.warning("Skipping unreadable article file: %s", exc)
                continue
            article.status = status
            articles.append(article)
        return articles

    def save(self, article: Article) -> None:
        self._write(self._path(article.status, article.id), article)

    def move(self, article: Article, from_status: ArticleStatus) -> None:
        source = self._path(from_status, article.id)
        target = self._path(article.status, article.id)
        self._write(target, article)
        if source == target:
            return
        try:
            source.unlink()
        except FileNotFoundError:
            logger.warning("Source file %s vanished during move", source)
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot remove {source} after copying to {target}: {exc}") from exc
        logger.info("Moved article %s: %s -> %s", article.id, from_status.value, article.status.value)
