from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse

import yaml

from ..models import Topic


class ConfigError(Exception):
    """Raised when a configuration file is invalid or missing required fields."""


# Name used by the generator and the CLI for the same fatal condition
ConfigLoadError = ConfigError


DEFAULT_WEIGHTS: Dict[str, float] = {
    "readability": 0.20,
    "seo": 0.25,
    "keywordDensity": 0.20,
    "structure": 0.15,
    "length": 0.10,
    "originality": 0.10,
}

ALLOWED_PRIORITIES = {"high", "medium", "low"}

DEFAULT_EVERGREEN_KEYWORDS = [
    "basics",
    "beginner",
    "guide",
    "introduction",
    "fundamentals",
    "how to",
    "what is",
    "complete guide",
    "ultimate guide",
]
DEFAULT_HIGH_PRIORITY_CATEGORIES = ["investing", "retirement", "taxes", "banking"]


@dataclass(slots=True)
class GenerationSettings:
    min_word_count: int = 2000
    auto_approval_score: int = 70
    max_retries: int = 3
    retry_delay_seconds: float = 2.0
    api_timeout_seconds: float = 60.0
    models: List[str] = field(default_factory=lambda: ["gpt-4", "gpt-3.5-turbo"])


@dataclass(slots=True)
class DedupSettings:
    title_threshold: float = 0.85
    topic_threshold: float = 0.90


@dataclass(slots=True)
class ArchiveSettings:
    archive_after_days: int = 365
    redirect_expiry_days: int = 730
    evergreen_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_EVERGREEN_KEYWORDS))
    evergreen_min_quality: int = 85
    high_priority_categories: List[str] = field(default_factory=lambda: list(DEFAULT_HIGH_PRIORITY_CATEGORIES))
    high_priority_multiplier: float = 1.5


@dataclass(slots=True)
class HomepageSettings:
    display_count: int = 12
    new_badge_count: int = 3


@dataclass(slots=True)
class SiteConfig:
    """Everything loaded from the config directory at startup."""

    site_name: str = "Smart Finance Hub"
    base_url: str = "https://smartfinancehub.vip"
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    quality_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    dedup: DedupSettings = field(default_factory=DedupSettings)
    archive: ArchiveSettings = field(default_factory=ArchiveSettings)
    homepage: HomepageSettings = field(default_factory=HomepageSettings)
    topics: List[Topic] = field(default_factory=list)
    long_tail_keywords: List[str] = field(default_factory=list)


def validate_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    """Check a quality weight vector and return it as a plain dict.

    Every criterion of ``DEFAULT_WEIGHTS`` must be present, non-negative, and
    the total must be 1.0 within 1e-6.
    """
    missing = set(DEFAULT_WEIGHTS) - set(weights)
    if missing:
        raise ConfigError(f"Quality weights missing criteria: {sorted(missing)}")
    unknown = set(weights) - set(DEFAULT_WEIGHTS)
    if unknown:
        raise ConfigError(f"Unknown quality criteria: {sorted(unknown)}")
    out: Dict[str, float] = {}
    for key, value in weights.items():
        try:
            num = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Weight '{key}' is not a number: {value!r}") from exc
        if math.isnan(num) or num < 0:
            raise ConfigError(f"Weight '{key}' must be a non-negative number, got {value!r}")
        out[key] = num
    total = sum(out.values())
    if abs(total - 1.0) > 1e-6:
        raise ConfigError(f"Quality weights must sum to 1.0, got {total:.6f}")
    return out


def _read_mapping(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level of {path} must be a mapping")
    return data


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _number(section: Mapping[str, Any], key: str, default: float, *, cast=float):
    if key not in section or section[key] is None:
        return default
    try:
        return cast(section[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be numeric, got {section[key]!r}") from exc


def _string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def _coerce_topic(entry: Any, index: int) -> Topic:
    if not isinstance(entry, dict):
        raise ConfigError(f"Topic #{index} must be a mapping, got: {type(entry)}")
    missing = {"id", "title", "category"} - set(entry)
    if missing:
        raise ConfigError(f"Topic #{index} missing required fields: {sorted(missing)}")
    priority = str(entry.get("priority") or "medium").lower()
    if priority not in ALLOWED_PRIORITIES:
        raise ConfigError(f"Topic '{entry['id']}' has invalid priority '{priority}'")
    return Topic(
        id=str(entry["id"]).strip(),
        title=str(entry["title"]).strip(),
        category=str(entry["category"]).strip(),
        keywords=_string_list(entry.get("keywords"), "keywords"),
        priority=priority,  # type: ignore[arg-type]
    )


def load_settings(path: Path | str) -> SiteConfig:
    """Load ``settings.json`` into a ``SiteConfig`` without topics or keywords."""
    data = _read_mapping(Path(path))

    site = _section(data, "site")
    base_url = str(site.get("baseUrl") or "https://smartfinancehub.vip").rstrip("/")
    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid site.baseUrl '{base_url}'. Must be absolute http(s) URL.")

    gen = _section(data, "contentGeneration")
    models = _string_list(gen.get("models"), "contentGeneration.models") or ["gpt-4", "gpt-3.5-turbo"]
    generation = GenerationSettings(
        min_word_count=_number(gen, "minWordCount", 2000, cast=int),
        auto_approval_score=_number(gen, "autoApprovalScore", 70, cast=int),
        max_retries=_number(gen, "maxRetries", 3, cast=int),
        retry_delay_seconds=_number(gen, "retryDelaySeconds", 2.0),
        api_timeout_seconds=_number(gen, "apiTimeoutSeconds", 60.0),
        models=models,
    )
    if generation.max_retries < 1:
        raise ConfigError("contentGeneration.maxRetries must be at least 1")
    if generation.api_timeout_seconds <= 0:
        raise ConfigError("contentGeneration.apiTimeoutSeconds must be positive")

    quality = _section(data, "quality")
    weights = validate_weights(quality.get("weights") or DEFAULT_WEIGHTS)

    dd = _section(data, "deduplication")
    dedup = DedupSettings(
        title_threshold=_number(dd, "titleThreshold", 0.85),
        topic_threshold=_number(dd, "topicThreshold", 0.90),
    )

    ar = _section(data, "archive")
    archive = ArchiveSettings(
        archive_after_days=_number(ar, "archiveAfterDays", 365, cast=int),
        redirect_expiry_days=_number(ar, "redirectExpiryDays", 730, cast=int),
        evergreen_keywords=_string_list(ar.get("evergreenKeywords"), "archive.evergreenKeywords")
        or list(DEFAULT_EVERGREEN_KEYWORDS),
        evergreen_min_quality=_number(ar, "evergreenMinQuality", 85, cast=int),
        high_priority_categories=_string_list(ar.get("highPriorityCategories"), "archive.highPriorityCategories")
        or list(DEFAULT_HIGH_PRIORITY_CATEGORIES),
        high_priority_multiplier=_number(ar, "highPriorityMultiplier", 1.5),
    )

    hp = _section(data, "homepage")
    homepage = HomepageSettings(
        display_count=_number(hp, "displayCount", 12, cast=int),
        new_badge_count=_number(hp, "newBadgeCount", 3, cast=int),
    )

    return SiteConfig(
        site_name=str(site.get("name") or "Smart Finance Hub"),
        base_url=base_url,
        generation=generation,
        quality_weights=weights,
        dedup=dedup,
        archive=archive,
        homepage=homepage,
    )


def load_topics(path: Path | str) -> List[Topic]:
    """Load ``topics.json``: a mapping with a ``topics`` list.

    Each topic needs ``id``, ``title`` and ``category``; ``keywords`` and
    ``priority`` (high | medium | low, default medium) are optional.
    """
    data = _read_mapping(Path(path))
    raw = data.get("topics") or []
    if not isinstance(raw, list):
        raise ConfigError("'topics' must be a list")
    topics = [_coerce_topic(item, i) for i, item in enumerate(raw)]
    ids = [t.id for t in topics]
    if len(ids) != len(set(ids)):
        raise ConfigError("Topic ids must be unique")
    return topics


def load_long_tail_keywords(path: Path | str) -> List[str]:
    """Load the long-tail keyword bank from ``keywords.json``.

    Expected shape: ``keywordGroups.longTailKeywords.keywords`` is a list of
    ``{"term": "..."}`` mappings or plain strings. Other groups are ignored.
    """
    data = _read_mapping(Path(path))
    groups = _section(data, "keywordGroups")
    long_tail = groups.get("longTailKeywords") or {}
    if not isinstance(long_tail, dict):
        raise ConfigError("'keywordGroups.longTailKeywords' must be a mapping")
    entries = long_tail.get("keywords") or []
    if not isinstance(entries, list):
        raise ConfigError("'keywordGroups.longTailKeywords.keywords' must be a list")
    terms: List[str] = []
    for entry in entries:
        if isinstance(entry, str):
            term = entry
        elif isinstance(entry, dict) and isinstance(entry.get("term"), str):
            term = entry["term"]
        else:
            raise ConfigError(f"Invalid long-tail keyword entry: {entry!r}")
        if term.strip():
            terms.append(term.strip())
    return terms


def load_site_config(config_dir: Path | str) -> SiteConfig:
    """Load settings, topics and keywords from ``config_dir``."""
    base = Path(config_dir)
    config = load_settings(base / "settings.json")
    config.topics = load_topics(base / "topics.json")
    config.long_tail_keywords = load_long_tail_keywords(base / "keywords.json")
    return config
