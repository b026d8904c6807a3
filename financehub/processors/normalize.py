from __future__ import annotations

import html
import re
import unicodedata
from datetime import datetime, timezone
from typing import List, Optional

from bs4 import BeautifulSoup

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_sentence_split_re = re.compile(r"[.!?]+")
_word_re = re.compile(r"\S+")
_title_strip_re = re.compile(r"[^a-z0-9\s]")
_slug_strip_re = re.compile(r"[^a-z0-9\s-]")
_dash_run_re = re.compile(r"-+")

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u00A0"): " ",  # non-breaking space
}


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text(" ")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text for scoring and comparison.

    - Strip BOM
    - Replace curly quotes/dashes and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters and collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()


def html_to_plain(raw_html: str | None) -> str:
    return normalize_plain_text(clean_html_to_text(raw_html))


def split_words(text: str) -> List[str]:
    return _word_re.findall(text or "")


def split_sentences(text: str) -> List[str]:
    return [s for s in (p.strip() for p in _sentence_split_re.split(text or "")) if s]


def count_words(raw_html: str | None) -> int:
    return len(split_words(clean_html_to_text(raw_html)))


def reading_time_minutes(word_count: int, *, words_per_minute: int = 200) -> int:
    return max(1, -(-word_count // words_per_minute))


def normalize_title(title: str | None) -> str:
    """Lowercase, drop punctuation and collapse whitespace for title matching."""
    lowered = normalize_plain_text(title).lower()
    return _whitespace_re.sub(" ", _title_strip_re.sub("", lowered)).strip()


def slugify(title: str | None, *, max_length: int = 60) -> str:
    slug = _slug_strip_re.sub("", normalize_plain_text(title).lower())
    slug = _whitespace_re.sub("-", slug.strip())
    slug = _dash_run_re.sub("-", slug)
    return slug[:max_length].strip("-")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str | datetime | None) -> Optional[datetime]:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts ISO 8601 with or without a trailing ``Z`` and a few plain date
    formats. Returns None for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%d.%m.%Y"):
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
