from __future__ import annotations

import random
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Literal, Optional

from ..models import Article, ArticleStatus, KeywordSelection, Topic
from ..output.pipeline_reporter import BatchReport
from ..processors.ai.base import AIClient, GenerationError
from ..processors.ai.parsing import ParsedArticle, parse_article_response
from ..processors.ai.retry import call_with_timeout, with_retries
from ..processors.normalize import count_words, reading_time_minutes, to_iso, utc_now
from ..processors.quality import QualityScorer
from ..utils.config_loader import SiteConfig
from ..utils.logging import get_logger
from ..workflow.repository import ArticleRepository, PersistenceError
from .prompts import build_system_prompt, build_user_prompt
from .selection import ContentType, ContentTypeRotation, TopicSelector, select_keywords
from .templates import render_fallback

logger = get_logger("sfh.generator")

GenerationKind = Literal["success", "fallback", "failed"]


@dataclass(slots=True)
class GenerationResult:
    kind: GenerationKind
    article: Optional[Article] = None
    error: Optional[str] = None
    attempts: int = 0


class ContentGenerator:
    """Draft new articles with the LLM, falling back to local templates.

    Every article, generated or templated, is scored and saved as a draft.
    Only persistence failures make a result ``failed``; generation failures
    always end in a fallback article.
    """

    def __init__(
        self,
        config: SiteConfig,
        repository: ArticleRepository,
        *,
        client: Optional[AIClient] = None,
        scorer: Optional[QualityScorer] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self.config = config
        self.repository = repository
        self.client = client
        self.scorer = scorer or QualityScorer(config.quality_weights, min_word_count=config.generation.min_word_count)
        self.selector = TopicSelector(config.topics, rng=rng)
        self.rotation = ContentTypeRotation()
        self._clock = clock
        self._sleep = sleep
        self._new_id = id_factory

    def _default_meta(self, topic: Topic) -> str:
        return f"Learn about {topic.title} with expert advice from {self.config.site_name}."

    def _call_llm(
        self, client: AIClient, topic: Topic, keywords: KeywordSelection, content_type: ContentType
    ) -> ParsedArticle:
        settings = self.config.generation
        system_prompt = build_system_prompt(site_name=self.config.site_name, min_words=settings.min_word_count)
        user_prompt = build_user_prompt(
            topic, keywords, content_type, site_name=self.config.site_name, year=self._clock().year
        )
        timeout = settings.api_timeout_seconds
        raw = call_with_timeout(lambda: client.complete(system_prompt, user_prompt, timeout=timeout), timeout)
        return parse_article_response(raw, default_title=topic.title, default_meta=self._default_meta(topic))

    def _build_article(self, topic: Topic, keywords: KeywordSelection, content_type: ContentType) -> Article:
        now = to_iso(self._clock())
        return Article(
            id=self._new_id(),
            title=topic.title,
            category=topic.category,
            topic=topic.id,
            keywords=keywords.all,
            target_keywords=keywords.to_dict(),
            status=ArticleStatus.DRAFT,
            created_at=now,
            generated_at=now,
            content_type=content_type.name,
        )

    def generate_article(self, topic: Optional[Topic] = None) -> GenerationResult:
        topic = topic or self.selector.select()
        content_type = self.rotation.next()
        keywords = select_keywords(topic, self.config.long_tail_keywords)
        article = self._build_article(topic, keywords, content_type)
        logger.info("Generating article on '%s' (%s, %s)", topic.title, topic.category, content_type.name)

        attempts = 0
        error: Optional[str] = None

        def _count(attempt: int, exc: Exception) -> None:
            nonlocal attempts
            attempts = attempt

        parsed: Optional[ParsedArticle] = None
        client = self.client
        if client is None:
            error = "no LLM client configured"
        else:
            try:
                parsed = with_retries(
                    lambda: self._call_llm(client, topic, keywords, content_type),
                    attempts=self.config.generation.max_retries,
                    delay=self.config.generation.retry_delay_seconds,
                    sleep=self._sleep,
                    on_failure=_count,
                )
                attempts += 1
            except GenerationError as exc:
                error = str(exc)
                logger.warning("Generation failed after %d attempt(s): %s; using fallback template", attempts, exc)
            except Exception as exc:  # noqa: BLE001
                attempts = max(attempts, 1)
                error = f"{type(exc).__name__}: {exc}"
                logger.exception("Unexpected LLM failure; using fallback template")

        if parsed is not None:
            kind: GenerationKind = "success"
            article.title = parsed.title
            article.meta_description = parsed.meta_description
            article.content = parsed.content
            article.cta = parsed.cta
        else:
            kind = "fallback"
            fallback = render_fallback(topic, keywords, self._clock(), site_name=self.config.site_name)
            article.title = fallback.title
            article.meta_description = fallback.meta_description
            article.content = fallback.content
            article.cta = fallback.cta
            article.is_fallback_article = True
            article.template_used = fallback.template

        article.quality_score = self.scorer.score_article(article)
        article.word_count = count_words(article.content)
        article.reading_time = reading_time_minutes(article.word_count)

        try:
            self.repository.save(article)
        except PersistenceError as exc:
            logger.error("Could not save article %s: %s", article.id, exc)
            return GenerationResult("failed", article=article, error=str(exc), attempts=attempts)

        logger.info(
            "Saved draft %s '%s' (quality %s, %s)", article.id, article.title, article.quality, kind
        )
        return GenerationResult(kind, article=article, error=error, attempts=attempts)

    def generate_batch(self, count: int) -> BatchReport:
        report = BatchReport("generate")
        for _ in range(max(0, count)):
            result = self.generate_article()
            article_id = result.article.id if result.article else None
            title = result.article.title if result.article else ""
            if result.kind == "failed":
                report.failed(article_id, result.error or "unknown error", title=title)
            else:
                report.succeeded(article_id, result.kind, title=title)
        return report
