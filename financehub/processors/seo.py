from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models import Article
from .normalize import count_words, utc_now

ADVICE_MARKERS = ("should invest", "recommend", "best choice", "you should", "advice")

CATEGORY_SECTIONS = {
    "banking": "Banking & Savings",
    "investing": "Investment Strategies",
    "credit": "Credit Management",
    "debt": "Debt Management",
    "retirement": "Retirement Planning",
    "taxes": "Tax Planning",
    "insurance": "Insurance",
    "budgeting": "Budgeting & Planning",
}

ADVICE_DISCLAIMER = (
    "This content is for educational purposes only and should not be considered personalized "
    "financial advice. Consult with a qualified financial advisor before making financial decisions."
)


@dataclass(slots=True)
class FieldCheck:
    length: int
    score: int
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass(slots=True)
class MetaValidation:
    title: FieldCheck
    meta_description: FieldCheck
    keywords: FieldCheck
    overall: int

    def to_dict(self) -> Dict[str, Any]:
        def _field(check: FieldCheck) -> Dict[str, Any]:
            data = asdict(check)
            data["isValid"] = check.is_valid
            return data

        return {
            "title": _field(self.title),
            "metaDescription": _field(self.meta_description),
            "keywords": _field(self.keywords),
            "overall": self.overall,
        }


def article_keywords(article: Article) -> List[str]:
    seen: Dict[str, None] = {}
    for kw in [*article.keywords, *(article.target_keywords.get("primary") or []),
               *(article.target_keywords.get("longTail") or [])]:
        kw = str(kw).strip()
        if kw and kw.lower() not in (k.lower() for k in seen):
            seen[kw] = None
    return list(seen)


def validate_title(title: str, *, year: int) -> FieldCheck:
    issues: List[str] = []
    score = 100
    if len(title) < 40:
        issues.append("Title too short (recommended: 40-60 characters)")
        score -= 20
    elif len(title) > 60:
        issues.append("Title too long (recommended: 40-60 characters)")
        score -= 15
    if str(year) not in title and "Guide" not in title and "Tips" not in title:
        issues.append("Consider adding year or descriptive words for better CTR")
        score -= 10
    recs = ["Optimize title length and include engaging words"] if issues else []
    return FieldCheck(length=len(title), score=max(score, 0), issues=issues, recommendations=recs)


def validate_meta_description(meta: str, *, brand: str) -> FieldCheck:
    issues: List[str] = []
    score = 100
    if len(meta) < 140:
        issues.append("Meta description too short (recommended: 140-160 characters)")
        score -= 25
    elif len(meta) > 160:
        issues.append("Meta description too long (recommended: 140-160 characters)")
        score -= 20
    if brand not in meta:
        issues.append("Consider including brand name")
        score -= 10
    recs = ["Optimize meta description length and include brand"] if issues else []
    return FieldCheck(length=len(meta), score=max(score, 0), issues=issues, recommendations=recs)


def validate_keywords(keywords: List[str]) -> FieldCheck:
    issues: List[str] = []
    score = 100
    if len(keywords) < 3:
        issues.append("Too few keywords identified")
        score -= 30
    elif len(keywords) > 10:
        issues.append("Too many keywords may dilute focus")
        score -= 20
    return FieldCheck(length=len(keywords), score=max(score, 0), issues=issues)


def validate_meta_tags(article: Article, *, brand: str = "Smart Finance Hub", now: Optional[datetime] = None) -> MetaValidation:
    """Check title, meta description and keyword count; ``overall`` is their mean."""
    year = (now or utc_now()).year
    title = validate_title(article.title or "", year=year)
    meta = validate_meta_description(article.meta_description or "", brand=brand)
    keywords = validate_keywords(article_keywords(article))
    overall = round((title.score + meta.score + keywords.score) / 3)
    return MetaValidation(title=title, meta_description=meta, keywords=keywords, overall=overall)


def schema_markup(article: Article, *, base_url: str, site_name: str = "Smart Finance Hub") -> Dict[str, Any]:
    """Build schema.org Article JSON-LD for an article page."""
    created = article.original_created_at or article.created_at
    schema: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": article.title,
        "description": article.meta_description,
        "author": {"@type": "Organization", "name": f"{site_name} Editorial Team", "url": f"{base_url}/about"},
        "publisher": {
            "@type": "Organization",
            "name": site_name,
            "url": base_url,
            "logo": {"@type": "ImageObject", "url": f"{base_url}/assets/images/logo.png"},
        },
        "datePublished": article.published_at or created,
        "dateModified": article.updated_at or article.published_at or created,
        "mainEntityOfPage": {"@type": "WebPage", "@id": f"{base_url}{article.url or ''}"},
        "articleSection": CATEGORY_SECTIONS.get(article.category, "Personal Finance"),
        "keywords": article_keywords(article),
        "wordCount": article.word_count or count_words(article.content),
    }
    lowered = (article.content or "").lower()
    if any(marker in lowered for marker in ADVICE_MARKERS):
        schema["disclaimer"] = ADVICE_DISCLAIMER
    return schema
