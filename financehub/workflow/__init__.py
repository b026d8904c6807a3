"""Article lifecycle: storage, state machine, archive policy and workflow operations."""

from .archive_policy import ArchiveDecision, ArchivePolicy
from .manager import WorkflowManager, archive_path, article_url
from .repository import (
    STATUS_DIRS,
    ArticleNotFoundError,
    ArticleRepository,
    FileArticleRepository,
    PersistenceError,
)
from .state import ALLOWED_TRANSITIONS, TransitionError, can_transition

__all__ = [
    "ArchiveDecision",
    "ArchivePolicy",
    "WorkflowManager",
    "archive_path",
    "article_url",
    "STATUS_DIRS",
    "ArticleNotFoundError",
    "ArticleRepository",
    "FileArticleRepository",
    "PersistenceError",
    "ALLOWED_TRANSITIONS",
    "TransitionError",
    "can_transition",
]
