"""Core PR review orchestration.

enumerate changed files → BatchScheduler (+ chunker) → assembled diff →
parse_diff → per-hunk analysis → validate → SubmissionBatcher
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from github import GithubException
from rich.console import Console

from hunkwise_core.analysis import Analyzer, PullRequestInfo
from hunkwise_core.config import PipelineConfig, load_guidelines
from hunkwise_core.diffparse import parse_diff
from hunkwise_core.gh.pull_request import (
    compare_revisions,
    get_last_reviewed_sha,
    get_pull,
    get_repo,
    list_changed_files,
    sha_marker,
    submit_review,
)
from hunkwise_core.providers.anthropic import AnthropicReviewer
from hunkwise_core.providers.openai import OpenAIReviewer
from hunkwise_core.scheduler import BatchScheduler, SchedulerStats
from hunkwise_core.submitter import SubmissionBatcher
from hunkwise_core.utils.paths import is_excluded
from hunkwise_core.validator import validate_comments
from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import ResumableMatch, Session, SessionKey, StaleMismatch

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class ReviewSummary:
    """Result returned by run_review for the CLI to report."""

    repo: str
    pr_number: int
    head_sha: str
    resumed: bool = False
    processed_files: list[str] = field(default_factory=list)
    excluded_files: list[str] = field(default_factory=list)
    candidate_comments: int = 0
    validated_comments: int = 0
    rejected_comments: int = 0
    posted_comments: int = 0
    parse_failures: int = 0
    dry_run: bool = False
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def _get_reviewer(config: dict):
    model = config["model"]
    options = {
        "model": config.get("model_name"),
        "temperature": config.get("temperature"),
        "max_tokens": config.get("max_tokens"),
    }
    if model == "anthropic":
        return AnthropicReviewer(api_key=config["anthropic_api_key"], **options)
    if model == "openai":
        return OpenAIReviewer(api_key=config["openai_api_key"], base_url=config.get("api_base_url"), **options)
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def _build_summary(
    stats: SchedulerStats,
    total_files: int,
    candidates: int,
    validated: int,
    elapsed_seconds: float,
    incremental_info: dict | None = None,
) -> str:
    """Build the top-level review body posted with the final comment batch."""
    elapsed_min = elapsed_seconds / 60
    time_str = f"{int(elapsed_seconds)}s" if elapsed_min < 1 else f"{elapsed_min:.1f} min"

    lines = ["## Review summary\n"]
    if incremental_info:
        base = incremental_info["base_sha"][:7]
        head = incremental_info["head_sha"][:7]
        lines.append(f"_Incremental review: `{base}` → `{head}`_\n")

    lines.append(
        f"**{total_files}** file(s) in scope"
        + (f", **{stats.split}** split into chunks" if stats.split else "")
        + (f", **{stats.placeholders}** without a textual diff" if stats.placeholders else "")
        + (f", **{stats.failed}** could not be read" if stats.failed else "")
        + f" · **{validated}** comment(s) · reviewed in {time_str}\n"
    )

    rejected = candidates - validated
    if rejected:
        lines.append(f"_{rejected} suggestion(s) dropped because they referenced lines outside the diff._")
    return "\n".join(lines)


def _select_work_items(this_repo, this_pr, head_sha: str, force_full: bool, base_sha: str | None):
    """Return (items, incremental_info); items is None when there is nothing new to review."""
    if not force_full:
        last_sha = base_sha or get_last_reviewed_sha(this_pr)
        if last_sha:
            if last_sha == head_sha:
                return None, None
            try:
                items = compare_revisions(this_repo, last_sha, head_sha)
                console.print(
                    f"[cyan]Incremental review: {last_sha[:7]} → {head_sha[:7]} ({len(items)} file(s) changed)[/cyan]"
                )
                return items, {"base_sha": last_sha, "head_sha": head_sha}
            except GithubException:
                console.print(
                    "[yellow]Could not compute incremental diff (force push?). Falling back to full review.[/yellow]"
                )
    return list_changed_files(this_pr), None


def _open_session(store: BaseCheckpointStore, key: SessionKey, total_files: int) -> tuple[Session, bool]:
    lookup = store.lookup(key)
    if isinstance(lookup, ResumableMatch):
        session = lookup.session
        # The PR may have gained files since the interrupted attempt.
        session.total_files = max(session.total_files, total_files)
        console.print(
            f"[cyan]Resuming from previous session: {len(session.processed_files)}/{session.total_files} "
            f"files already processed (started {session.timestamp})[/cyan]"
        )
        return session, True
    if isinstance(lookup, StaleMismatch):
        logger.info("Discarding checkpoint for %s before starting %s", lookup.session.key, key)
        store.clear()
    console.print("Starting fresh review session")
    return Session.start(key, total_files), False


async def review_pull_request(
    repo: str,
    pr_number: int,
    config: dict,
    store: BaseCheckpointStore,
    force_full: bool = False,
    base_sha: str | None = None,
    dry_run: bool = False,
    repo_obj=None,
    sleep=asyncio.sleep,
) -> ReviewSummary | None:
    """Run the full pipeline. Returns None on clean early exits (nothing to review)."""
    pipeline = PipelineConfig.from_config(config)
    dry_run = dry_run or pipeline.local_testing
    this_repo = repo_obj if repo_obj is not None else get_repo(repo, token=config["github_token"])

    try:
        this_pr = get_pull(this_repo, pr_number)
    except GithubException:
        raise ValueError(f"PR #{pr_number} not found in {repo}.")

    if this_pr.draft and not config.get("review_draft_prs", False):
        console.print("[yellow]Skipping draft PR. Set review_draft_prs: true in .hunkwise.yml to review drafts.[/yellow]")
        return None

    head_sha = this_pr.head.sha
    items, incremental_info = _select_work_items(this_repo, this_pr, head_sha, force_full, base_sha)
    if items is None:
        console.print("[yellow]No new commits since the last review. Nothing to do.[/yellow]")
        return None

    excluded = [item.filename for item in items if is_excluded(item.filename, pipeline.exclude)]
    if excluded:
        logger.info("Exclude patterns removed %d file(s)", len(excluded))
    items = [item for item in items if item.filename not in excluded]

    if pipeline.local_testing:
        items = items[: pipeline.local_testing_max_files]
        logger.info("LOCAL_TESTING: processing only %d file(s)", len(items))

    if not items:
        console.print("[yellow]No files left to review after filtering.[/yellow]")
        return None

    key = SessionKey(repo, pr_number)
    session, resumed = _open_session(store, key, len(items))
    if pipeline.local_testing:
        session.total_files = len(items)

    review_start = time.monotonic()
    scheduler = BatchScheduler(store, pipeline, sleep=sleep)
    diff_text = await scheduler.run(items, session)

    if not diff_text.strip():
        console.print("[yellow]No diff found or empty diff returned.[/yellow]")
        return None

    files = parse_diff(diff_text)
    logger.info("Parsed diff contains %d file entries", len(files))
    if not files:
        console.print("[yellow]No changes to analyze after parsing diff.[/yellow]")
        return None

    analyzer = Analyzer(_get_reviewer(config), pipeline.analysis_concurrency, load_guidelines(config))
    pr_info = PullRequestInfo(title=this_pr.title or "", description=this_pr.body or "")
    analysis = await analyzer.analyze(files, pr_info)

    validated = validate_comments(analysis.candidates, files)

    posted = 0
    if validated:
        elapsed = time.monotonic() - review_start
        summary_body = _build_summary(
            scheduler.stats, session.total_files, len(analysis.candidates), len(validated), elapsed, incremental_info
        )
        batcher = SubmissionBatcher(
            store,
            pipeline,
            submit_fn=lambda comments, body: submit_review(this_pr, comments, body),
            sleep=sleep,
            dry_run=dry_run,
        )
        posted = await batcher.submit(validated, session, summary_body=summary_body + "\n" + sha_marker(head_sha))
    else:
        console.print("[green]No issues found, no comments to submit.[/green]")

    return ReviewSummary(
        repo=repo,
        pr_number=pr_number,
        head_sha=head_sha,
        resumed=resumed,
        processed_files=list(session.processed_files),
        excluded_files=excluded,
        candidate_comments=len(analysis.candidates),
        validated_comments=len(validated),
        rejected_comments=len(analysis.candidates) - len(validated),
        posted_comments=posted,
        parse_failures=analysis.parse_failures,
        dry_run=dry_run,
    )


def run_review(repo: str, pr_number: int, config: dict, store: BaseCheckpointStore, **kwargs) -> ReviewSummary | None:
    """Synchronous entry point for the CLI."""
    return asyncio.run(review_pull_request(repo, pr_number, config, store, **kwargs))
