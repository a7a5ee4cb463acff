"""Rate-limited, resumable fetching of per-file diff fragments.

GitHub refuses whole-PR diffs above 20,000 lines, so large pull requests are
rebuilt file by file. Files are processed in fixed-size batches: all files
of a batch run concurrently and the batch is a join point, followed by a
non-blocking pause before the next batch.

Every processed file is appended to the session and checkpointed before the
scheduler moves on, so a crash loses at most the files in flight. Per-file
failures become placeholder fragments; nothing a single file does can stop
the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hunkwise_core.assembler import PLACEHOLDER_ERROR, assemble, placeholder, reconstruct
from hunkwise_core.chunker import file_header, split_patch
from hunkwise_core.config import PipelineConfig
from hunkwise_core.models import WorkItem
from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import Session, WriteFailed

logger = logging.getLogger(__name__)


@dataclass
class SchedulerStats:
    verbatim: int = 0
    placeholders: int = 0
    split: int = 0
    failed: int = 0
    skipped_resumed: int = 0
    checkpoint_failures: int = 0


class BatchScheduler:
    def __init__(
        self,
        store: BaseCheckpointStore,
        config: PipelineConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.config = config
        self._sleep = sleep
        self.stats = SchedulerStats()

    async def run(
        self,
        items: list[WorkItem],
        session: Session,
        batch_size: int | None = None,
        inter_batch_delay: float | None = None,
    ) -> str:
        """Process ``items`` and return the assembled diff text.

        Items already listed in ``session.processed_files`` are skipped and
        represented by a manifest instead of their diff.
        """
        batch_size = batch_size or self.config.file_batch_size
        delay = self.config.file_batch_delay if inter_batch_delay is None else inter_batch_delay
        self.stats = SchedulerStats()

        resuming = bool(session.processed_files)
        manifest = reconstruct(session) if resuming else ""
        pending = [item for item in items if not session.is_processed(item.filename)]
        self.stats.skipped_resumed = len(items) - len(pending)

        if resuming:
            logger.info(
                "Resuming %s: %d/%d files already processed, %d remaining",
                session.key,
                len(session.processed_files),
                session.total_files,
                len(pending),
            )

        fragments: list[str] = []
        batches = [pending[i : i + batch_size] for i in range(0, len(pending), batch_size)]
        for offset, batch in enumerate(batches):
            batch_number = session.current_batch + 1
            logger.info("Processing batch %d (%d files)", batch_number, len(batch))

            results = await asyncio.gather(*(self._process_item(item, session) for item in batch))
            fragments.extend(results)

            session.current_batch = batch_number
            self._checkpoint(session)

            if offset < len(batches) - 1 and delay > 0:
                logger.info("Waiting %.1fs before processing next batch...", delay)
                await self._sleep(delay)

        if session.mark_completed_if_done():
            self._checkpoint(session)
            logger.info("All files processed - review session %s completed", session.key)

        logger.info(
            "Processed %d file(s) verbatim, %d with placeholder info, %d split into chunks, %d failed",
            self.stats.verbatim,
            self.stats.placeholders,
            self.stats.split,
            self.stats.failed,
        )
        return assemble(fragments, manifest)

    async def _process_item(self, item: WorkItem, session: Session) -> str:
        try:
            fragment = self._render(item)
        except Exception as e:
            self.stats.failed += 1
            logger.error("Error processing %s: %s", item.filename, e)
            fragment = placeholder(item.filename, PLACEHOLDER_ERROR)

        # Failed items count as processed too; a resume does not retry them.
        session.mark_processed(item.filename)
        self._checkpoint(session)
        return fragment

    def _render(self, item: WorkItem) -> str:
        if not item.has_patch:
            self.stats.placeholders += 1
            logger.info("No patch data available for %s, creating minimal diff info", item.filename)
            return placeholder(item.filename)

        line_count = len(item.patch.split("\n"))
        if line_count > self.config.oversized_patch_lines:
            logger.info("File %s has %d lines, splitting into chunks", item.filename, line_count)
            chunks = split_patch(item.filename, item.patch, self.config.max_lines_per_chunk)
            self.stats.split += 1
            return "\n".join(chunk.text for chunk in chunks)

        self.stats.verbatim += 1
        return file_header(item.filename) + item.patch

    def _checkpoint(self, session: Session) -> None:
        result = self.store.save(session)
        if isinstance(result, WriteFailed):
            self.stats.checkpoint_failures += 1
            logger.warning("Checkpoint not written, progress may be lost on restart: %s", result.reason)
