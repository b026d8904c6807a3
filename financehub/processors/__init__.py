"""Article processing: normalization, quality scoring, fact checking, SEO and deduplication."""

from .dedup import Deduplicator, DuplicateContentError, jaccard_similarity
from .fact_check import FactChecker, FactCheckReport
from .normalize import clean_html_to_text, html_to_plain, normalize_plain_text, normalize_title, slugify
from .quality import QualityScorer, ScoringInput
from .seo import schema_markup, validate_meta_tags

__all__ = [
    "Deduplicator",
    "DuplicateContentError",
    "jaccard_similarity",
    "FactChecker",
    "FactCheckReport",
    "clean_html_to_text",
    "html_to_plain",
    "normalize_plain_text",
    "normalize_title",
    "slugify",
    "QualityScorer",
    "ScoringInput",
    "schema_markup",
    "validate_meta_tags",
]
