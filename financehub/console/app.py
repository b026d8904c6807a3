"""Flask review console: a JSON API over the workflow, generator and publisher.

The app keeps no state of its own; every request reads and writes through
the services handed to ``create_app``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ..analysis.stats import calculate_analytics, publishing_schedule, system_stats
from ..generator import ContentGenerator
from ..models import ArticleStatus
from ..output.publisher import Publisher
from ..processors.fact_check import FactChecker
from ..processors.dedup import DuplicateContentError
from ..processors.normalize import html_to_plain, to_iso, utc_now
from ..processors.quality import score_keyword_density
from ..processors.seo import article_keywords, schema_markup, validate_meta_tags
from ..utils.logging import get_logger
from ..workflow.manager import WorkflowManager
from ..workflow.repository import ArticleNotFoundError
from ..workflow.state import TransitionError

logger = get_logger("sfh.console")

FOLDERS = {
    "drafts": ArticleStatus.DRAFT,
    "approved": ArticleStatus.APPROVED,
    "published": ArticleStatus.PUBLISHED,
    "rejected": ArticleStatus.REJECTED,
    "archived": ArticleStatus.ARCHIVED,
}


class ServiceUnavailable(RuntimeError):
    pass


@dataclass(slots=True)
class ConsoleServices:
    manager: WorkflowManager
    generator: Optional[ContentGenerator] = None
    publisher: Optional[Publisher] = None
    fact_checker: FactChecker = field(default_factory=FactChecker)
    clock: Callable[[], datetime] = utc_now
    started_at: datetime = field(default_factory=utc_now)


api = Blueprint("api", __name__, url_prefix="/api")


def _services() -> ConsoleServices:
    return current_app.extensions["financehub"]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _ok(**payload: Any):
    return jsonify({"success": True, **payload})


# ---------------- Articles -----------------
@api.get("/articles/<key>")
def get_articles(key: str):
    services = _services()
    if key in FOLDERS:
        articles = services.manager.list(FOLDERS[key])
        return _ok(articles=[a.to_dict() for a in articles], count=len(articles))
    return _ok(article=services.manager.get(key).to_dict())


@api.put("/articles/<article_id>")
def update_article(article_id: str):
    body = _body()
    changes = body.get("changes", body)
    article = _services().manager.update(article_id, changes, editor=body.get("editor", "reviewer"))
    return _ok(article=article.to_dict(), message="Article updated")


@api.delete("/articles/<article_id>")
def delete_article(article_id: str):
    body = _body()
    article = _services().manager.remove(
        article_id, reason=body.get("reason", "Deleted by reviewer"), reviewer=body.get("reviewer", "reviewer")
    )
    return _ok(article=article.to_dict(), message=f"Article moved to {article.status.value}")


@api.post("/articles/<article_id>/approve")
def approve_article(article_id: str):
    body = _body()
    article = _services().manager.approve(
        article_id, reviewer=body.get("reviewer", "reviewer"), notes=body.get("notes", "")
    )
    if article.status is ArticleStatus.APPROVED:
        return _ok(article=article.to_dict(), message="Article approved")
    return jsonify({"success": False, "article": article.to_dict(), "error": article.rejection_reason})


@api.post("/articles/<article_id>/reject")
def reject_article(article_id: str):
    body = _body()
    article = _services().manager.reject(
        article_id,
        reviewer=body.get("reviewer", "reviewer"),
        reason=body.get("reason", ""),
        notes=body.get("notes", ""),
    )
    return _ok(article=article.to_dict(), message="Article rejected")


@api.post("/articles/<article_id>/schedule")
def schedule_article(article_id: str):
    body = _body()
    publish_date = body.get("publishDate")
    if not publish_date:
        raise ValueError("publishDate is required")
    article = _services().manager.schedule(article_id, str(publish_date), platforms=body.get("platforms"))
    return _ok(article=article.to_dict(), message=f"Article scheduled for {article.scheduled_for}")


@api.post("/articles/<article_id>/publish")
def publish_article(article_id: str):
    services = _services()
    if services.publisher is not None:
        article = services.publisher.publish(article_id)
    else:
        article = services.manager.publish(article_id)
    return _ok(article=article.to_dict(), url=article.published_url, message="Article published")


@api.post("/articles/<article_id>/seo-check")
def seo_check(article_id: str):
    services = _services()
    article = services.manager.get(article_id)
    config = services.manager.config
    keywords = article_keywords(article)
    analysis = {
        "metaValidation": validate_meta_tags(article, brand=config.site_name, now=services.clock()).to_dict(),
        "schema": schema_markup(article, base_url=config.base_url, site_name=config.site_name),
        "keywords": keywords,
        "keywordDensityScore": score_keyword_density(html_to_plain(article.content), keywords),
    }
    return _ok(seoAnalysis=analysis)


@api.post("/articles/<article_id>/fact-check")
def fact_check(article_id: str):
    services = _services()
    article = services.manager.get(article_id)
    report = services.fact_checker.check_html(article.content)
    return _ok(factCheck=report.to_dict())


# ---------------- Batch operations -----------------
@api.post("/generate")
def generate():
    services = _services()
    if services.generator is None:
        raise ServiceUnavailable("Content generator is not configured")
    count = int(_body().get("count", 1))
    if count < 1 or count > 20:
        raise ValueError("count must be between 1 and 20")
    report = services.generator.generate_batch(count)
    return jsonify({"success": report.ok, "report": report.to_dict()})


@api.post("/publish/all-approved")
def publish_all_approved():
    services = _services()
    if services.publisher is None:
        raise ServiceUnavailable("Publisher is not configured")
    report = services.publisher.publish_all_approved()
    return jsonify({"success": report.ok, "report": report.to_dict()})


@api.post("/process-pending-approvals")
def process_pending_approvals():
    threshold = _body().get("threshold")
    report = _services().manager.process_pending_approvals(None if threshold is None else int(threshold))
    return jsonify({"success": report.ok, "report": report.to_dict()})


# ---------------- Monitoring -----------------
@api.get("/analytics")
def analytics():
    services = _services()
    now = services.clock()
    return _ok(analytics=calculate_analytics(services.manager.repository, now).to_dict(), timestamp=to_iso(now))


@api.get("/schedule")
def schedule():
    services = _services()
    entries = publishing_schedule(services.manager.repository, services.clock())
    return _ok(schedule=[e.to_dict() for e in entries])


@api.get("/stats")
def stats():
    services = _services()
    return _ok(stats=system_stats(services.manager.repository, services.clock(), started_at=services.started_at))


@api.get("/health")
def health():
    return _ok(status="healthy", timestamp=to_iso(_services().clock()))


# ---------------- Error mapping -----------------
def _error(status: int, message: str):
    return jsonify({"success": False, "error": message}), status


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ArticleNotFoundError)
    def _not_found(exc: ArticleNotFoundError):
        return _error(404, str(exc))

    @app.errorhandler(TransitionError)
    def _conflict(exc: TransitionError):
        return _error(409, str(exc))

    @app.errorhandler(DuplicateContentError)
    def _duplicate(exc: DuplicateContentError):
        return _error(409, f"Duplicate content: {exc.reason}")

    @app.errorhandler(ValueError)
    def _bad_request(exc: ValueError):
        return _error(400, str(exc))

    @app.errorhandler(ServiceUnavailable)
    def _unavailable(exc: ServiceUnavailable):
        return _error(503, str(exc))

    @app.errorhandler(HTTPException)
    def _http(exc: HTTPException):
        return _error(exc.code or 500, exc.description or exc.name)

    @app.errorhandler(Exception)
    def _internal(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error(500, str(exc))


def create_app(
    manager: WorkflowManager,
    *,
    generator: Optional[ContentGenerator] = None,
    publisher: Optional[Publisher] = None,
    fact_checker: Optional[FactChecker] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Flask:
    app = Flask(__name__)
    app.extensions["financehub"] = ConsoleServices(
        manager=manager,
        generator=generator,
        publisher=publisher,
        fact_checker=fact_checker or FactChecker(),
        clock=clock,
        started_at=clock(),
    )
    app.register_blueprint(api)
    _register_error_handlers(app)
    logger.info("Review console ready (generator=%s, publisher=%s)", bool(generator), bool(publisher))
    return app
