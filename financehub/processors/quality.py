"""Heuristic quality scoring for generated articles.

Six criteria are scored independently on a 0-100 scale and combined with a
validated weight vector. Scoring never raises for malformed input: a criterion
that cannot be computed falls back to a neutral 50 and the failure is logged.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from ..models import QualityScore
from ..utils.config_loader import DEFAULT_WEIGHTS, validate_weights
from ..utils.logging import get_logger
from .normalize import clean_html_to_text, split_sentences, split_words

logger = get_logger("sfh.processors.quality")

NEUTRAL_SCORE = 50

_syllable_suffix_re = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_syllable_prefix_re = re.compile(r"^y")
_vowel_group_re = re.compile(r"[aeiouy]{1,2}")
_section_heading_re = re.compile(r"<h[2-3][^>]*>", re.IGNORECASE)

RECOMMENDATIONS = {
    "readability": (70, "Improve readability: use shorter sentences and simpler words"),
    "seo": (80, "Optimize SEO: adjust title/meta description length and add more headings and links"),
    "keywordDensity": (70, "Adjust keyword density: target 1-3% for primary keywords"),
    "structure": (80, "Improve structure: add clear introduction, 5-10 sections, conclusion and a strong CTA"),
    "length": (90, "Adjust length: aim for the target word count"),
}


@dataclass(slots=True)
class ScoringInput:
    title: str = ""
    meta_description: str = ""
    content: str = ""
    cta: str = ""
    keywords: Sequence[str] = field(default_factory=list)


def count_syllables(word: str) -> int:
    word = (word or "").lower()
    if len(word) <= 3:
        return 1
    word = _syllable_suffix_re.sub("", word)
    word = _syllable_prefix_re.sub("", word)
    return len(_vowel_group_re.findall(word)) or 1


def clamp_score(value: float) -> int:
    """Clamp to [0, 100] and round; NaN and None become the neutral score."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return NEUTRAL_SCORE
    return int(round(min(100.0, max(0.0, float(value)))))


def score_readability(text: str) -> int:
    words = split_words(text)
    sentences = split_sentences(text)
    if not words or not sentences:
        return NEUTRAL_SCORE
    syllables = sum(count_syllables(w) for w in words)
    flesch = 206.835 - 1.015 * (len(words) / len(sentences)) - 84.6 * (syllables / len(words))
    if flesch >= 70:
        return 100
    if flesch >= 60:
        return 85
    if flesch >= 50:
        return 70
    if flesch >= 30:
        return 55
    return 30


def _is_internal_link(href: str) -> bool:
    return "smartfinancehub" in href or "smart-finance-hub" in href or href.startswith("/")


def score_seo(title: str, meta_description: str, content_html: str) -> int:
    score = 0

    title_len = len(title or "")
    if 40 <= title_len <= 60:
        score += 20
    elif title_len <= 70:
        score += 15
    else:
        score += 5

    meta_len = len(meta_description or "")
    if 140 <= meta_len <= 160:
        score += 20
    elif meta_len <= 170:
        score += 15
    else:
        score += 5

    soup = BeautifulSoup(content_html or "", "html.parser")
    h1 = len(soup.find_all("h1"))
    h2 = len(soup.find_all("h2"))
    if h1 == 1 and 3 <= h2 <= 8:
        score += 30
    elif h1 <= 1 and h2 >= 2:
        score += 20
    else:
        score += 10

    hrefs = [a.get("href") or "" for a in soup.find_all("a")]
    internal = sum(1 for h in hrefs if _is_internal_link(h))
    external = sum(1 for h in hrefs if h.startswith("http") and not _is_internal_link(h))
    if internal >= 3 and external >= 2:
        score += 30
    elif internal >= 2 or external >= 1:
        score += 20
    else:
        score += 10

    return min(100, score)


def keyword_occurrences(text: str, keyword: str) -> int:
    pattern = re.compile(r"\b" + re.escape(keyword.lower()) + r"\b", re.IGNORECASE)
    return len(pattern.findall(text))


def score_keyword_density(text: str, keywords: Iterable[str]) -> int:
    words = split_words(text)
    if not words:
        return NEUTRAL_SCORE
    targets = [k for k in (kw.strip() for kw in keywords) if k]
    if not targets:
        if len(words) >= 2000:
            return 85
        if len(words) >= 1000:
            return 70
        return 50

    densities: List[float] = []
    for kw in targets:
        hits = keyword_occurrences(text, kw)
        if hits:
            densities.append(hits / len(words) * 100)
    if not densities:
        return 20

    avg = sum(densities) / len(densities)
    if 1 <= avg <= 3:
        score = 100
    elif 0.5 <= avg <= 5:
        score = 80
    elif 0.1 <= avg <= 7:
        score = 60
    else:
        score = 30
    coverage = len(densities) / len(targets)
    return int(min(100, score + coverage * 20))


def score_structure(content_html: str, text: str, cta: str) -> int:
    score = 0
    lowered = text.lower()
    if "introduction" in lowered or len(text) > 200:
        score += 25
    if "conclusion" in lowered or "takeaway" in lowered:
        score += 25
    sections = len(_section_heading_re.findall(content_html or ""))
    if 5 <= sections <= 10:
        score += 25
    elif sections >= 3:
        score += 15
    if cta and len(cta) > 50:
        score += 25
    return score


def score_length(word_count: int, target: int = 2000) -> int:
    if target <= word_count <= target + 1500:
        return 100
    if word_count >= target * 0.8:
        return 75
    if word_count >= target * 0.6:
        return 50
    return 25


def score_originality(content_html: str) -> int:
    """Placeholder: no corpus comparison is done, only HTML length is used."""
    length = len(content_html or "")
    if length > 3000:
        return 90
    if length > 1500:
        return 85
    return 80


class QualityScorer:
    """Score an article's title, meta description, content and CTA.

    The weight vector is validated here so that a bad configuration fails at
    startup rather than on the first article.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None, *, min_word_count: int = 2000) -> None:
        self.weights = validate_weights(weights if weights is not None else DEFAULT_WEIGHTS)
        self.min_word_count = min_word_count

    def _safe(self, name: str, fn: Callable[[], float]) -> int:
        try:
            return clamp_score(fn())
        except Exception as exc:  # noqa: BLE001 - a broken criterion must not fail scoring
            logger.warning("Scoring criterion '%s' failed: %s; using %s", name, exc, NEUTRAL_SCORE)
            return NEUTRAL_SCORE

    def score(self, data: ScoringInput) -> QualityScore:
        content = data.content or ""
        text = clean_html_to_text(content)
        word_count = len(split_words(text))

        breakdown: Dict[str, int] = {
            "readability": self._safe("readability", lambda: score_readability(text)),
            "seo": self._safe("seo", lambda: score_seo(data.title, data.meta_description, content)),
            "keywordDensity": self._safe("keywordDensity", lambda: score_keyword_density(text, data.keywords)),
            "structure": self._safe("structure", lambda: score_structure(content, text, data.cta)),
            "length": self._safe("length", lambda: score_length(word_count, self.min_word_count)),
            "originality": self._safe("originality", lambda: score_originality(content)),
        }
        overall = clamp_score(sum(breakdown[k] * w for k, w in self.weights.items()))

        recommendations = [
            message for key, (threshold, message) in RECOMMENDATIONS.items() if breakdown[key] < threshold
        ]
        logger.debug("Quality score %s for '%s': %s", overall, (data.title or "")[:60], breakdown)
        return QualityScore(
            overall=overall,
            breakdown=breakdown,
            weights=dict(self.weights),
            recommendations=recommendations,
        )

    def score_article(self, article) -> QualityScore:
        keywords = list(article.target_keywords.get("primary") or []) + list(
            article.target_keywords.get("longTail") or []
        )
        if not keywords:
            keywords = list(article.keywords)
        return self.score(
            ScoringInput(
                title=article.title or "",
                meta_description=article.meta_description or "",
                content=article.content or "",
                cta=article.cta or "",
                keywords=keywords,
            )
        )
