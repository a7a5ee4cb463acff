from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": "openai",
    "model_name": None,  # None = provider default
    "api_base_url": "https://openrouter.ai/api/v1",
    "max_tokens": 700,
    "temperature": 0.2,
    "guidelines": None,  # optional path to extra review instructions
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "review_draft_prs": False,
    "file_batch_size": 10,
    "file_batch_delay": 1.0,
    "oversized_patch_lines": 15000,
    "max_lines_per_chunk": 5000,
    "analysis_concurrency": 4,
    "comment_batch_size": 5,
    "comment_batch_delay": 3.0,
    "rate_limit_cooldown": 10.0,
    "checkpoint": "file",  # file | gist | none
    "checkpoint_path": "ai-review-progress.json",
    "gist_id": None,
    "export_path": "exported-comments.json",
    "local_testing": False,
    "local_testing_max_files": 20,
}


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def load_config(config_path: str = ".hunkwise.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .hunkwise.yml in the current directory
      3. CLI argument overrides

    This is the only place in hunkwise_core that reads the process environment. Components
    receive a PipelineConfig built from the returned dict.
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = _first_env("OPENROUTER_API_KEY", "OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    if not config.get("model_name"):
        config["model_name"] = _first_env("OPENROUTER_API_MODEL", "OPENAI_API_MODEL")

    if os.environ.get("LOCAL_TESTING") == "true":
        config["local_testing"] = True

    return config


def load_guidelines(config: dict) -> str:
    """
    Load optional review guidelines appended to every analysis prompt.

    Returns an empty string when ``guidelines`` is not set.
    """
    custom_path = config.get("guidelines")
    if not custom_path:
        return ""
    p = Path(custom_path)
    if not p.exists():
        raise FileNotFoundError(f"Guidelines file not found: {custom_path}")
    return p.read_text()


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit settings handed to each pipeline component."""

    file_batch_size: int = 10
    file_batch_delay: float = 1.0
    oversized_patch_lines: int = 15000
    max_lines_per_chunk: int = 5000
    analysis_concurrency: int = 4
    comment_batch_size: int = 5
    comment_batch_delay: float = 3.0
    rate_limit_cooldown: float = 10.0
    exclude: tuple[str, ...] = ()
    local_testing: bool = False
    local_testing_max_files: int = 20

    @classmethod
    def from_config(cls, config: dict) -> PipelineConfig:
        return cls(
            file_batch_size=int(config.get("file_batch_size", cls.file_batch_size)),
            file_batch_delay=float(config.get("file_batch_delay", cls.file_batch_delay)),
            oversized_patch_lines=int(config.get("oversized_patch_lines", cls.oversized_patch_lines)),
            max_lines_per_chunk=int(config.get("max_lines_per_chunk", cls.max_lines_per_chunk)),
            analysis_concurrency=int(config.get("analysis_concurrency", cls.analysis_concurrency)),
            comment_batch_size=int(config.get("comment_batch_size", cls.comment_batch_size)),
            comment_batch_delay=float(config.get("comment_batch_delay", cls.comment_batch_delay)),
            rate_limit_cooldown=float(config.get("rate_limit_cooldown", cls.rate_limit_cooldown)),
            exclude=tuple(config.get("exclude") or ()),
            local_testing=bool(config.get("local_testing", False)),
            local_testing_max_files=int(config.get("local_testing_max_files", cls.local_testing_max_files)),
        )
