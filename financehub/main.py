"""Command-line entrypoint for the Smart Finance Hub content pipeline.

Modes can be combined and run in pipeline order:
1) generate drafts
2) approve drafts above the quality threshold and reject duplicates
3) publish approved articles and archive old ones
4) regenerate the static site, print stats or serve the review console
"""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .analysis.stats import system_stats
from .console import create_app
from .generator import ContentGenerator
from .output.github_client import GitHubClient
from .output.pipeline_reporter import BatchReport
from .output.publisher import Publisher
from .processors.ai import create_ai_client
from .processors.normalize import utc_now
from .utils.config_loader import ConfigError, SiteConfig, load_site_config
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import RuntimeConfig
from .workflow import FileArticleRepository, WorkflowManager

logger = get_logger("sfh.cli")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Smart Finance Hub pipeline: generate, review, publish and archive articles"
    )
    parser.add_argument("--config-dir", default=None, help="Directory holding settings/topics/keywords JSON")
    parser.add_argument("--generate", type=int, metavar="N", default=0, help="Generate N draft articles")
    parser.add_argument(
        "--auto-approve",
        action="store_true",
        help="After generating, approve drafts at or above the auto-approval score",
    )
    parser.add_argument("--deduplicate", action="store_true", help="Reject duplicate drafts and approved articles")
    parser.add_argument(
        "--process-approvals",
        action="store_true",
        help="Approve every pending draft at or above the auto-approval score",
    )
    parser.add_argument("--publish-approved", action="store_true", help="Publish all approved articles that are due")
    parser.add_argument("--archive", action="store_true", help="Archive published articles past the age threshold")
    parser.add_argument("--restore", metavar="ID", default=None, help="Restore an archived article")
    parser.add_argument("--regenerate-site", action="store_true", help="Rebuild homepage, listing, pages and sitemap")
    parser.add_argument("--stats", action="store_true", help="Print analytics as JSON")
    parser.add_argument("--serve", action="store_true", help="Run the review console HTTP API")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Write the site locally but only log the GitHub commits that would be made",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


@dataclass(slots=True)
class Services:
    config: SiteConfig
    manager: WorkflowManager
    generator: ContentGenerator
    publisher: Publisher


def _github_client(runtime: RuntimeConfig) -> Optional[GitHubClient]:
    if not runtime.github_repository:
        logger.info("GITHUB_REPOSITORY not set; site files are written locally only")
        return None
    try:
        return GitHubClient(repo=runtime.github_repository, branch=runtime.github_branch, dry_run=runtime.dry_run)
    except RuntimeError as exc:
        logger.warning("GitHub commits disabled: %s", exc)
        return None


def build_services(runtime: RuntimeConfig, config: SiteConfig) -> Services:
    repository = FileArticleRepository(runtime.content_dir)
    manager = WorkflowManager(repository, config=config)
    try:
        client = create_ai_client(backend=runtime.generation_backend, models=config.generation.models)
    except ValueError as exc:
        logger.warning("LLM backend unavailable (%s); drafts will use fallback templates", exc)
        client = None
    generator = ContentGenerator(config, repository, client=client, scorer=manager.scorer)
    publisher = Publisher(
        manager,
        runtime.site_dir,
        github=_github_client(runtime),
        path_prefix=runtime.site_path_prefix,
    )
    return Services(config=config, manager=manager, generator=generator, publisher=publisher)


def _log_report(report: BatchReport) -> None:
    logger.info(
        "%s: %d succeeded, %d failed", report.operation, report.success_count, report.failure_count
    )
    for item in report.items:
        if not item.ok:
            logger.warning("  %s: %s", item.article_id or "(none)", item.detail)


def run(args: argparse.Namespace, services: Services, runtime: RuntimeConfig) -> int:
    reports: List[BatchReport] = []

    if args.generate:
        reports.append(services.generator.generate_batch(args.generate))
    if args.deduplicate:
        reports.append(services.manager.deduplicate())
    if args.auto_approve or args.process_approvals:
        reports.append(services.manager.process_pending_approvals())
    if args.publish_approved:
        reports.append(services.publisher.publish_all_approved())
    if args.archive:
        reports.append(services.publisher.archive_expired())
    if args.restore:
        article = services.publisher.restore(args.restore)
        logger.info("Restored %s to %s", article.id, article.url)
    if args.regenerate_site:
        services.publisher.regenerate_site()

    for report in reports:
        _log_report(report)

    if args.stats:
        print(json.dumps(system_stats(services.manager.repository, utc_now()), indent=2))

    if args.serve:
        app = create_app(services.manager, generator=services.generator, publisher=services.publisher)
        logger.info("Review console listening on http://%s:%d", runtime.console_host, runtime.console_port)
        app.run(host=runtime.console_host, port=runtime.console_port)

    return 0 if all(r.ok for r in reports) else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)

    runtime = RuntimeConfig()
    if args.config_dir:
        runtime.config_dir = Path(args.config_dir)
    if args.dry_run:
        runtime.dry_run = True

    logger.info("Loading site configuration from %s", runtime.config_dir)
    try:
        config = load_site_config(runtime.config_dir)
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    logger.info("Loaded %d topic(s) and %d long-tail keyword(s)", len(config.topics), len(config.long_tail_keywords))

    try:
        services = build_services(runtime, config)
        return run(args, services, runtime)
    except Exception as exc:  # noqa: BLE001 - top-level entrypoint guard
        logger.exception("Pipeline failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
