"""Post validated comments to GitHub in small review batches.

Small batches with a pause in between keep clear of GitHub's secondary rate
limits. A rejected batch is not retried: after a rate-limit rejection the
batcher cools down once and moves on to the next batch. Every computed
comment is merged into the session afterwards, posted or not, so exports
reflect what the review found rather than only what reached GitHub.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from rich.console import Console

from hunkwise_core.config import PipelineConfig
from hunkwise_core.gh.pull_request import is_rate_limited
from hunkwise_core.models import ValidatedComment
from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import CommentRecord, Session, WriteFailed

console = Console()
logger = logging.getLogger(__name__)

# (comments, body) -> None; raises on rejection.
SubmitFn = Callable[[list[ValidatedComment], str], None]


def print_dry_run_comments(comments: list[ValidatedComment]) -> None:
    """Print review comments to the terminal without posting to GitHub."""
    if not comments:
        console.print("[yellow]Dry run: no comments generated.[/yellow]")
        return
    console.print(f"\n[bold]Dry run: {len(comments)} comment(s) (not posted)[/bold]\n")
    for c in comments:
        side = "" if c.side == "RIGHT" else " [dim](old side)[/dim]"
        console.print(f"[bold cyan]{c.path}[/bold cyan]  line [bold]{c.line}[/bold]{side}")
        console.print(f"  {c.body}")
        console.print()


class SubmissionBatcher:
    def __init__(
        self,
        store: BaseCheckpointStore,
        config: PipelineConfig,
        submit_fn: SubmitFn,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        dry_run: bool = False,
    ):
        self.store = store
        self.config = config
        self.submit_fn = submit_fn
        self._sleep = sleep
        self.dry_run = dry_run

    async def submit(
        self,
        validated: list[ValidatedComment],
        session: Session,
        batch_size: int | None = None,
        summary_body: str = "",
    ) -> int:
        """Submit ``validated`` and return how many comments were posted."""
        batch_size = batch_size or self.config.comment_batch_size
        success_count = 0

        if self.dry_run:
            print_dry_run_comments(validated)
        else:
            success_count = await self._post_batches(validated, batch_size, summary_body)
            logger.info("Successfully posted %d/%d review comments", success_count, len(validated))

        session.all_comments.extend(
            CommentRecord(path=c.path, line=c.line, body=c.body, side=c.side) for c in validated
        )
        result = self.store.save(session)
        if isinstance(result, WriteFailed):
            logger.warning("Could not record submitted comments in the checkpoint: %s", result.reason)
        return success_count

    async def _post_batches(self, comments: list[ValidatedComment], batch_size: int, summary_body: str) -> int:
        batches = [comments[i : i + batch_size] for i in range(0, len(comments), batch_size)]
        success_count = 0

        for idx, batch in enumerate(batches):
            is_last = idx == len(batches) - 1
            body = (
                summary_body
                if is_last and summary_body
                else f"Review in progress ({success_count + len(batch)}/{len(comments)} comments)..."
            )
            try:
                await asyncio.to_thread(self.submit_fn, batch, body)
            except Exception as e:
                logger.error("Error posting batch %d/%d of comments: %s", idx + 1, len(batches), e)
                if is_rate_limited(e):
                    logger.info("Rate limit detected, waiting %.0f seconds...", self.config.rate_limit_cooldown)
                    await self._sleep(self.config.rate_limit_cooldown)
                continue

            success_count += len(batch)
            if not is_last:
                logger.info("Waiting %.1fs before posting next batch...", self.config.comment_batch_delay)
                await self._sleep(self.config.comment_batch_delay)

        return success_count
