"""Render the static homepage, listing, article pages and sitemap.

Rendering is a pure function of the published set (plus ``now`` for the
sitemap's recency fields): the same input always produces byte-identical
output, so regenerating the site is idempotent.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Dict, List, Optional, Sequence

from ..models import Article
from ..processors.normalize import clean_html_to_text, parse_timestamp
from ..processors.seo import schema_markup
from ..utils.config_loader import SiteConfig

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
SITEMAP_BOOST_CATEGORIES = {"investing", "retirement", "banking"}


@dataclass(slots=True)
class ArticleCard:
    article_id: str
    title: str
    excerpt: str
    url: str
    category: str
    reading_time: int
    date_label: str
    is_new: bool


def _truncate(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def display_timestamp(article: Article) -> datetime:
    return parse_timestamp(article.sort_timestamp) or _EPOCH


def sort_published(articles: Sequence[Article]) -> List[Article]:
    """Newest first by original creation date; ties broken by id."""
    ordered = sorted(articles, key=lambda a: a.id)
    ordered.sort(key=display_timestamp, reverse=True)
    return ordered


def page_path(article: Article) -> str:
    """Repository path of an article page, derived from its frozen URL."""
    url = (article.url or f"/articles/{article.slug or article.id}").strip("/")
    return f"{url}.html"


def reading_time(article: Article) -> int:
    minutes = article.reading_time or max(1, round(article.word_count / 200))
    return max(3, min(15, minutes))


def build_card(article: Article, *, is_new: bool) -> ArticleCard:
    source = article.meta_description or clean_html_to_text(article.content)
    date = display_timestamp(article)
    return ArticleCard(
        article_id=article.id,
        title=_truncate(article.title, 70),
        excerpt=_truncate(clean_html_to_text(source), 120),
        url=article.url or f"/{page_path(article)}",
        category=article.category,
        reading_time=reading_time(article),
        date_label=date.strftime("%B %d, %Y") if date != _EPOCH else "",
        is_new=is_new,
    )


def _card_html(card: ArticleCard) -> str:
    badge = '<span class="badge-new">NEW</span>' if card.is_new else ""
    return (
        f'<article class="article-card" data-id="{escape(card.article_id)}">\n'
        f'  <div class="article-meta"><span class="category">{escape(card.category)}</span>{badge}'
        f'<span class="reading-time">{card.reading_time} min read</span>'
        f'<time>{escape(card.date_label)}</time></div>\n'
        f'  <h3><a href="{escape(card.url)}">{escape(card.title)}</a></h3>\n'
        f'  <p class="article-excerpt">{escape(card.excerpt)}</p>\n'
        "</article>"
    )


def _page(title: str, description: str, body: str, *, head_extra: str = "") -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n'
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{escape(title)}</title>\n"
        f'<meta name="description" content="{escape(description)}">\n'
        '<link rel="stylesheet" href="/assets/css/style.css">\n'
        f"{head_extra}"
        "</head>\n<body>\n"
        f"{body}\n"
        "</body>\n</html>\n"
    )


class SiteRenderer:
    def __init__(self, config: Optional[SiteConfig] = None) -> None:
        self.config = config or SiteConfig()

    def homepage_cards(self, published: Sequence[Article]) -> List[ArticleCard]:
        settings = self.config.homepage
        latest = sort_published(published)[: settings.display_count]
        return [build_card(a, is_new=i < settings.new_badge_count) for i, a in enumerate(latest)]

    def render_homepage(self, published: Sequence[Article]) -> str:
        cards = self.homepage_cards(published)
        grid = "\n".join(_card_html(c) for c in cards) or '<p class="empty">New articles are on the way.</p>'
        body = (
            f'<header><h1>{escape(self.config.site_name)}</h1></header>\n'
            '<main>\n<section class="latest-articles">\n<h2>Latest Articles</h2>\n'
            f'<div class="articles-grid">\n{grid}\n</div>\n'
            '<a class="view-all" href="/articles/">View all articles</a>\n'
            "</section>\n</main>"
        )
        return _page(
            f"{self.config.site_name} | Personal Finance Guides",
            "Expert personal finance guides on investing, saving, credit and retirement.",
            body,
        )

    def render_listing(self, published: Sequence[Article]) -> str:
        cards = [build_card(a, is_new=False) for a in sort_published(published)]
        items = "\n".join(_card_html(c) for c in cards)
        body = (
            f'<header><h1>All Articles</h1><a href="/">{escape(self.config.site_name)}</a></header>\n'
            f'<main>\n<div class="articles-list">\n{items}\n</div>\n</main>'
        )
        return _page(f"All Articles | {self.config.site_name}", "Every published article.", body)

    def render_article(self, article: Article, *, archived_notice: str = "") -> str:
        schema = json.dumps(
            schema_markup(article, base_url=self.config.base_url, site_name=self.config.site_name),
            ensure_ascii=False,
            sort_keys=True,
        )
        head_extra = f'<script type="application/ld+json">{schema}</script>\n'
        if article.published_url:
            head_extra += f'<link rel="canonical" href="{escape(article.published_url)}">\n'
        notice = f'<div class="archive-notice">{escape(archived_notice)}</div>\n' if archived_notice else ""
        cta = f'<aside class="cta">{escape(article.cta)}</aside>\n' if article.cta else ""
        body = (
            f'<header><a href="/">{escape(self.config.site_name)}</a></header>\n'
            f"<main>\n{notice}<article>\n{article.content}\n</article>\n{cta}</main>"
        )
        return _page(f"{article.title} | {self.config.site_name}", article.meta_description, body, head_extra=head_extra)

    def render_archived_article(self, article: Article) -> str:
        archived = parse_timestamp(article.archived_at)
        when = archived.strftime("%B %Y") if archived else "an earlier date"
        notice = (
            f"This article was archived in {when}. Some information may be out of date; "
            "see our latest articles for current guidance."
        )
        return self.render_article(article, archived_notice=notice)

    def sitemap_priority(self, article: Article, now: datetime) -> float:
        priority = 0.6
        if article.quality >= 90:
            priority += 0.2
        elif article.quality >= 80:
            priority += 0.1
        age_days = (now - (parse_timestamp(article.published_at or article.created_at) or now)).days
        if age_days < 7:
            priority += 0.1
        elif age_days < 30:
            priority += 0.05
        if (article.category or "").lower() in SITEMAP_BOOST_CATEGORIES:
            priority += 0.05
        return round(min(priority, 0.9), 2)

    @staticmethod
    def sitemap_changefreq(article: Article, now: datetime) -> str:
        age_days = (now - (parse_timestamp(article.published_at or article.created_at) or now)).days
        if age_days < 7:
            return "daily"
        if age_days < 30:
            return "weekly"
        if age_days < 90:
            return "monthly"
        return "yearly"

    def render_sitemap(self, published: Sequence[Article], now: datetime) -> str:
        base = self.config.base_url
        today = now.strftime("%Y-%m-%d")
        entries = [
            (f"{base}/", today, "daily", 1.0),
            (f"{base}/articles/", today, "daily", 0.9),
        ]
        for article in sort_published(published):
            modified = parse_timestamp(article.updated_at or article.published_at or article.created_at) or now
            entries.append(
                (
                    f"{base}{article.url or '/' + page_path(article)}",
                    modified.strftime("%Y-%m-%d"),
                    self.sitemap_changefreq(article, now),
                    self.sitemap_priority(article, now),
                )
            )
        urls = "\n".join(
            "  <url>\n"
            f"    <loc>{escape(loc)}</loc>\n"
            f"    <lastmod>{lastmod}</lastmod>\n"
            f"    <changefreq>{freq}</changefreq>\n"
            f"    <priority>{prio:.2f}</priority>\n"
            "  </url>"
            for loc, lastmod, freq, prio in entries
        )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            f"{urls}\n"
            "</urlset>\n"
        )

    def render_site(self, published: Sequence[Article], now: datetime) -> Dict[str, str]:
        """Return every generated file keyed by its path relative to the site root."""
        files: Dict[str, str] = {
            "index.html": self.render_homepage(published),
            "articles/index.html": self.render_listing(published),
            "sitemap.xml": self.render_sitemap(published, now),
        }
        for article in published:
            files[page_path(article)] = self.render_article(article)
        return files
