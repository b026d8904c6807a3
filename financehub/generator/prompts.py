from __future__ import annotations

from ..models import KeywordSelection, Topic
from .selection import ContentType


def build_system_prompt(*, site_name: str, min_words: int) -> str:
    return (
        f"You are an expert financial writer for {site_name}, a trusted personal finance website. "
        "You cover personal finance strategy, investing, banking products, credit and debt, "
        "retirement and tax planning, and financial regulation.\n\n"
        "Writing guidelines:\n"
        "- Professional, trustworthy tone in clear language for a general audience\n"
        "- Practical, actionable advice with concrete examples\n"
        "- Cite credible sources when making claims\n"
        "- Follow SEO best practices naturally\n"
        "- Disclose affiliate relationships when mentioning products\n\n"
        "Content requirements:\n"
        f"- {min_words}-{min_words + 500} words total\n"
        "- 5-7 main sections with <h2> headings and a single <h1>\n"
        "- Introduction with a hook and a preview, conclusion with key takeaways\n"
        "- Natural keyword integration (1-2% density)\n"
        "- A call-to-action encouraging newsletter signup\n\n"
        "Structure your response exactly as:\n"
        "TITLE: [60 characters max]\n"
        "META_DESCRIPTION: [155 characters max]\n"
        "CONTENT: [full article in HTML]\n"
        "CTA: [call-to-action paragraph]"
    )


def build_user_prompt(topic: Topic, keywords: KeywordSelection, content_type: ContentType, *, site_name: str, year: int) -> str:
    keyword_list = ", ".join(keywords.all) or topic.title
    return (
        f'Write a {content_type.name.lower()} article about "{topic.title}" for {site_name}.\n\n'
        f"Target keywords: {keyword_list}\n"
        f"Primary keyword: {keywords.target}\n"
        f"Category: {topic.category}\n\n"
        f"Content type: {content_type.name.upper()}\n"
        f"Tone: {content_type.tone}\n"
        f"Approach: {content_type.approach}\n\n"
        f"Use current {year} information, specific numbers and actionable takeaways, "
        "and end with a compelling newsletter signup CTA."
    )
