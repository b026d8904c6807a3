from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Dict

from ...utils.logging import get_logger
from .base import GenerationAPIError

logger = get_logger("sfh.ai.parsing")

_SECTION_RE = re.compile(r"^\s*(TITLE|META_DESCRIPTION|CONTENT|CTA)\s*:\s*", re.MULTILINE)
_JSON_KEYS = {
    "title": "title",
    "metaDescription": "meta_description",
    "meta_description": "meta_description",
    "content": "content",
    "cta": "cta",
}
_SECTION_KEYS = {
    "TITLE": "title",
    "META_DESCRIPTION": "meta_description",
    "CONTENT": "content",
    "CTA": "cta",
}


class ParseError(ValueError):
    """The response is not in the expected structured format."""


@dataclass(slots=True)
class ParsedArticle:
    title: str
    meta_description: str
    content: str
    cta: str


def _parse_json(raw: str) -> Dict[str, str]:
    match = re.search(r"\{[\s\S]*\}", raw)
    if not match:
        raise ParseError("No JSON object found in response")
    try:
        obj = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed JSON in response: {exc}") from exc
    if not isinstance(obj, dict):
        raise ParseError("JSON response is not an object")
    fields = {attr: str(obj[key]).strip() for key, attr in _JSON_KEYS.items() if isinstance(obj.get(key), str)}
    if not fields:
        raise ParseError("JSON response has none of the expected keys")
    return fields


def _parse_sections(raw: str) -> Dict[str, str]:
    matches = list(_SECTION_RE.finditer(raw))
    fields: Dict[str, str] = {}
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(raw)
        fields[_SECTION_KEYS[match.group(1)]] = raw[match.end():end].strip()
    return fields


def parse_article_response(raw: str, *, default_title: str, default_meta: str) -> ParsedArticle:
    """Parse an LLM response into article fields.

    Accepts a JSON object (title, metaDescription, content, cta) or the
    delimited ``TITLE:`` / ``META_DESCRIPTION:`` / ``CONTENT:`` / ``CTA:``
    format. Missing sections get defaults; a response without any content is
    treated as a failed call.
    """
    if not raw or not raw.strip():
        raise GenerationAPIError("Empty LLM response")

    try:
        fields = _parse_json(raw)
    except ParseError as exc:
        logger.debug("Falling back to delimited parsing: %s", exc)
        fields = _parse_sections(raw)

    content = fields.get("content", "")
    if not content:
        raise GenerationAPIError("LLM response contained no article content")

    return ParsedArticle(
        title=fields.get("title") or default_title,
        meta_description=fields.get("meta_description") or default_meta,
        content=content,
        cta=fields.get("cta", ""),
    )
