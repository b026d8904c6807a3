from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass(slots=True)
class RuntimeConfig:
    """Process-level options read from the environment at construction."""

    config_dir: Path = field(default_factory=lambda: Path(os.getenv("SFH_CONFIG_DIR", "config")))
    content_dir: Path = field(default_factory=lambda: Path(os.getenv("SFH_CONTENT_DIR", "content")))
    site_dir: Path = field(default_factory=lambda: Path(os.getenv("SFH_SITE_DIR", "site")))
    generation_backend: str = field(default_factory=lambda: os.getenv("GENERATION_BACKEND", "openai").lower())
    github_repository: str = field(default_factory=lambda: os.getenv("GITHUB_REPOSITORY", ""))
    github_branch: str = field(default_factory=lambda: os.getenv("GITHUB_BRANCH", ""))
    site_path_prefix: str = field(default_factory=lambda: os.getenv("SFH_SITE_PATH_PREFIX", ""))
    dry_run: bool = field(default_factory=lambda: _env_flag("SFH_DRY_RUN"))
    console_host: str = field(default_factory=lambda: os.getenv("SFH_CONSOLE_HOST", "127.0.0.1"))
    console_port: int = field(default_factory=lambda: int(os.getenv("SFH_CONSOLE_PORT", "3001")))
