"""Article drafting: topic and keyword selection, prompts, LLM calls and fallback templates."""

from .generator import ContentGenerator, GenerationResult
from .selection import CONTENT_TYPES, ContentType, ContentTypeRotation, TopicSelector, select_keywords
from .templates import TEMPLATES, render_fallback, select_template

__all__ = [
    "ContentGenerator",
    "GenerationResult",
    "CONTENT_TYPES",
    "ContentType",
    "ContentTypeRotation",
    "TopicSelector",
    "select_keywords",
    "TEMPLATES",
    "render_fallback",
    "select_template",
]
