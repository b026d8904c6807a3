from __future__ import annotations

import os
import time
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from github import Github, GithubException

from ..utils.logging import get_logger

logger = get_logger("sfh.output.github")

T = TypeVar("T")


class GitHubClient:
    """Create, update and delete files in the site repository through PyGithub."""

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        repo: Optional[str] = None,
        branch: Optional[str] = None,
        dry_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.token = token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GITHUB_API_KEY")
        if not self.token and not dry_run:
            raise RuntimeError("GITHUB_TOKEN/GITHUB_API_KEY not set and dry_run=False")
        self.repo_name = repo or os.environ.get("GITHUB_REPOSITORY")
        self.branch = branch or os.environ.get("GITHUB_BRANCH") or None
        self.dry_run = dry_run
        self._sleep = sleep
        self._client = Github(self.token) if self.token else None
        self._repo = None

    @property
    def repo(self):
        if self._repo is None:
            if not self._client:
                raise RuntimeError("GitHub client not configured")
            if not self.repo_name:
                raise RuntimeError("Repository not provided (env GITHUB_REPOSITORY)")
            self._repo = self._client.get_repo(self.repo_name)
        return self._repo

    def _branch_kwargs(self) -> Dict[str, str]:
        return {"branch": self.branch} if self.branch else {}

    def _ref_kwargs(self) -> Dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    def _rate_limit_sleep(self) -> None:
        if not self._client:
            return
        try:
            rl = self._client.get_rate_limit()
            core = getattr(rl, "core", None)
            if core is None:
                resources = getattr(rl, "resources", None)
                core = getattr(resources, "core", None) if resources is not None else None
            remaining = getattr(core, "remaining", None)
            reset = getattr(core, "reset", None)
            if remaining is not None and hasattr(reset, "timestamp") and remaining <= 1:
                sleep_s = max(0.0, reset.timestamp() - time.time())
                logger.info("GitHub rate limit reached; sleeping %.1fs until reset", sleep_s)
                self._sleep(sleep_s)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Skipping rate limit sleep due to error: %s", exc)

    def _call(self, action: str, fn: Callable[[], T], *, attempts: int = 4) -> T:
        backoff = 1.5
        for attempt in range(attempts):
            try:
                self._rate_limit_sleep()
                return fn()
            except GithubException as exc:
                status = getattr(exc, "status", None)
                if status in (404, 409, 422):
                    raise
                delay = backoff ** attempt
                if status in (403, 429):
                    logger.warning("GitHub API throttled/forbidden (%s) during %s. Retrying in %.1fs", status, action, delay)
                else:
                    logger.warning("GitHub exception during %s: %s; retrying", action, exc)
                self._sleep(delay)
        raise RuntimeError(f"GitHub {action} failed after {attempts} attempts")

    def read_file(self, path: str) -> Optional[str]:
        """Return the decoded file content, or None if it does not exist."""
        if not self._client:
            return None
        try:
            contents = self._call(f"read {path}", lambda: self.repo.get_contents(path, **self._ref_kwargs()))
        except GithubException as exc:
            if getattr(exc, "status", None) == 404:
                return None
            raise
        return contents.decoded_content.decode("utf-8")

    def put_file(self, path: str, content: str, message: str) -> bool:
        """Create ``path`` or update it in place using its current SHA.

        Returns True when a commit was made (or would have been, in dry run).
        """
        if self.dry_run:
            logger.info("[DRY-RUN] Would commit %s (%d bytes): %s", path, len(content), message)
            return True
        try:
            current = self._call(f"read {path}", lambda: self.repo.get_contents(path, **self._ref_kwargs()))
        except GithubException as exc:
            if getattr(exc, "status", None) != 404:
                raise
            self._call(f"create {path}", lambda: self.repo.create_file(path, message, content, **self._branch_kwargs()))
            logger.info("Created %s", path)
            return True

        if current.decoded_content.decode("utf-8") == content:
            logger.debug("Skipping unchanged %s", path)
            return False
        self._call(
            f"update {path}",
            lambda: self.repo.update_file(path, message, content, current.sha, **self._branch_kwargs()),
        )
        logger.info("Updated %s", path)
        return True

    def delete_file(self, path: str, message: str) -> bool:
        if self.dry_run:
            logger.info("[DRY-RUN] Would delete %s: %s", path, message)
            return True
        try:
            current = self._call(f"read {path}", lambda: self.repo.get_contents(path, **self._ref_kwargs()))
        except GithubException as exc:
            if getattr(exc, "status", None) == 404:
                logger.info("Nothing to delete at %s", path)
                return False
            raise
        self._call(f"delete {path}", lambda: self.repo.delete_file(path, message, current.sha, **self._branch_kwargs()))
        logger.info("Deleted %s", path)
        return True

    def commit_files(
        self,
        files: Dict[str, str],
        *,
        message: str,
        deletions: Iterable[str] = (),
        delay_seconds: float = 0.0,
    ) -> List[str]:
        """Commit every file in ``files`` and remove ``deletions``; returns changed paths."""
        changed: List[str] = []
        for path in sorted(files):
            if self.put_file(path, files[path], message):
                changed.append(path)
                if delay_seconds:
                    self._sleep(delay_seconds)
        for path in deletions:
            if self.delete_file(path, message):
                changed.append(path)
        return changed
