from __future__ import annotations

from typing import Dict, FrozenSet

from ..models import ArticleStatus

S = ArticleStatus

ALLOWED_TRANSITIONS: Dict[ArticleStatus, FrozenSet[ArticleStatus]] = {
    S.DRAFT: frozenset({S.APPROVED, S.REJECTED}),
    S.APPROVED: frozenset({S.PUBLISHED, S.REJECTED}),
    S.PUBLISHED: frozenset({S.ARCHIVED}),
    # Restore is manual only; nothing in the pipeline moves archived articles automatically
    S.ARCHIVED: frozenset({S.PUBLISHED}),
    S.REJECTED: frozenset(),
}


class TransitionError(Exception):
    """Raised for a status change the lifecycle does not allow."""

    def __init__(self, article_id: str, current: ArticleStatus, target: ArticleStatus, detail: str = "") -> None:
        message = f"Cannot move article {article_id} from {current.value} to {target.value}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.article_id = article_id
        self.current = current
        self.target = target


def can_transition(current: ArticleStatus, target: ArticleStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(article_id: str, current: ArticleStatus, target: ArticleStatus) -> None:
    if not can_transition(current, target):
        raise TransitionError(article_id, current, target)
