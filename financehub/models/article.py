from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PUBLISHED = "published"
    REJECTED = "rejected"
    ARCHIVED = "archived"


@dataclass(slots=True)
class QualityScore:
    overall: int
    breakdown: Dict[str, int]
    weights: Dict[str, float]
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "breakdown": dict(self.breakdown),
            "weights": dict(self.weights),
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QualityScore":
        return cls(
            overall=int(data.get("overall", 0)),
            breakdown={str(k): int(v) for k, v in (data.get("breakdown") or {}).items()},
            weights={str(k): float(v) for k, v in (data.get("weights") or {}).items()},
            recommendations=[str(r) for r in data.get("recommendations") or []],
        )


@dataclass(slots=True)
class Article:
    id: str
    title: str
    meta_description: str = ""
    content: str = ""
    cta: str = ""
    category: str = ""
    topic: str = ""
    keywords: List[str] = field(default_factory=list)
    target_keywords: Dict[str, Any] = field(default_factory=dict)
    status: ArticleStatus = ArticleStatus.DRAFT
    quality_score: Optional[QualityScore] = None

    # Lifecycle timestamps, ISO 8601 strings
    original_created_at: Optional[str] = None
    created_at: Optional[str] = None
    generated_at: Optional[str] = None
    updated_at: Optional[str] = None
    approved_at: Optional[str] = None
    published_at: Optional[str] = None
    rejected_at: Optional[str] = None
    archived_at: Optional[str] = None
    restored_at: Optional[str] = None
    scheduled_for: Optional[str] = None

    slug: Optional[str] = None
    url: Optional[str] = None
    published_url: Optional[str] = None
    archive_path: Optional[str] = None

    word_count: int = 0
    reading_time: int = 0
    is_fallback_article: bool = False
    template_used: Optional[str] = None
    content_type: Optional[str] = None

    approved_by: Optional[str] = None
    rejected_by: Optional[str] = None
    updated_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    review_notes: Optional[str] = None
    archive_reason: Optional[str] = None
    restore_reason: Optional[str] = None
    publish_platforms: List[str] = field(default_factory=list)

    # Keys found on disk that this model does not know about
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def quality(self) -> int:
        return self.quality_score.overall if self.quality_score else 0

    @property
    def sort_timestamp(self) -> str:
        return self.original_created_at or self.published_at or self.created_at or ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if isinstance(value, ArticleStatus):
                value = value.value
            elif isinstance(value, QualityScore):
                value = value.to_dict()
            elif isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            data[_JSON_KEYS[f.name]] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        if not data.get("id"):
            raise ValueError("Article record has no 'id'")
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            attr = _ATTR_NAMES.get(key)
            if attr is None:
                extra[key] = value
            else:
                kwargs[attr] = value
        if "status" in kwargs:
            kwargs["status"] = ArticleStatus(kwargs["status"])
        qs = kwargs.get("quality_score")
        if isinstance(qs, dict):
            kwargs["quality_score"] = QualityScore.from_dict(qs)
        elif qs is not None:
            # Legacy records stored a bare number
            kwargs["quality_score"] = QualityScore(overall=int(qs), breakdown={}, weights={})
        kwargs["title"] = kwargs.get("title") or ""
        return cls(extra=extra, **kwargs)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_JSON_KEYS = {f.name: _camel(f.name) for f in fields(Article) if f.name != "extra"}
_ATTR_NAMES = {v: k for k, v in _JSON_KEYS.items()}
