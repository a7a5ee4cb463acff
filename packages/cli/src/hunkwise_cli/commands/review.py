"""review command: run a resumable review on a pull request."""

from __future__ import annotations

import click
from rich.console import Console

from hunkwise_core.gh.pull_request import get_pull_requests, get_repo
from hunkwise_core.reviewer import ReviewSummary, run_review

console = Console()


def _print_summary(summary: ReviewSummary) -> None:
    status = "resumed" if summary.resumed else "fresh"
    console.print(f"\n[bold]Review of {summary.repo}#{summary.pr_number}[/bold] ({status} session)")
    console.print(f"  files processed:     {len(summary.processed_files)}")
    if summary.excluded_files:
        console.print(f"  files excluded:      {len(summary.excluded_files)}")
    console.print(f"  candidate comments:  {summary.candidate_comments}")
    console.print(f"  validated comments:  {summary.validated_comments}")
    if summary.rejected_comments:
        console.print(f"  rejected comments:   {summary.rejected_comments}")
    if summary.parse_failures:
        console.print(f"  unparseable replies: {summary.parse_failures}")
    if summary.dry_run:
        console.print("  [dim]dry run: nothing was posted[/dim]")
    else:
        console.print(f"  posted comments:     {summary.posted_comments}")


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--guidelines",
    "guidelines_path",
    default=None,
    help="Path to extra review instructions. Overrides config file.",
)
@click.option(
    "--full-review",
    "full_review",
    is_flag=True,
    help="Review all changed files even if a previous review exists.",
)
@click.option("--base", "base_sha", default=None, help="Review only changes since this commit SHA.")
@click.option("--fresh", is_flag=True, help="Discard any stored checkpoint and start over.")
@click.option("--dry-run", "dry_run", is_flag=True, help="Print review comments without posting to GitHub.")
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int | None,
    model: str | None,
    guidelines_path: str | None,
    full_review: bool,
    base_sha: str | None,
    fresh: bool,
    dry_run: bool,
):
    """Review a pull request file by file, resuming an interrupted run.

    Changed files are fetched in rate-limited batches and checkpointed after
    every file, so a run cut short by a timeout or rate limit picks up where
    it stopped. Comments that do not point at a line in the diff are dropped
    before submission.

    \b
    Environment variables:
      GITHUB_TOKEN                          GitHub token (or use gh CLI)
      OPENROUTER_API_KEY / OPENAI_API_KEY   Required with --model openai
      ANTHROPIC_API_KEY                     Required with --model anthropic
      LOCAL_TESTING=true                    Review at most 20 files, never post
    """
    from hunkwise_core.config import load_config
    from hunkwise_cli.auth import resolve_github_token

    config = load_config(ctx.obj["config_path"], cli_overrides={"model": model, "guidelines": guidelines_path})

    token = resolve_github_token(config)
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token

    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENROUTER_API_KEY (or OPENAI_API_KEY) environment variable is not set.")

    store = ctx.obj["store"]
    this_repo = get_repo(repo, token=token)

    if pr_number is None:
        prs = list(get_pull_requests(this_repo))
        if not prs:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return
        console.print("\nOpen pull requests:")
        for pr in prs:
            console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
        pr_number = click.prompt("\nEnter the pull request number", type=int)

    if fresh and store.clear():
        console.print("Cleared stored checkpoint.")

    try:
        summary = run_review(
            repo=repo,
            pr_number=pr_number,
            config=config,
            store=store,
            force_full=full_review,
            base_sha=base_sha,
            dry_run=dry_run,
            repo_obj=this_repo,
        )
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(str(e))

    if summary is not None:
        _print_summary(summary)
