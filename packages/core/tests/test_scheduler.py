"""Tests for the rate-limited, resumable batch scheduler."""

from unittest.mock import AsyncMock

import pytest

from hunkwise_core.assembler import PLACEHOLDER_ERROR, PLACEHOLDER_NO_PATCH
from hunkwise_core.config import PipelineConfig
from hunkwise_core.models import WorkItem
from hunkwise_core.scheduler import BatchScheduler
from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import Session, SessionKey, WriteFailed, Written

KEY = SessionKey("owner/repo", 42)
SMALL_PATCH = "@@ -1,2 +1,3 @@\n line1\n+new line\n line2"


def big_patch(hunks=40, hunk_lines=500):
    lines = []
    for i in range(hunks):
        start = 1 + i * 1000
        lines.append(f"@@ -{start},{hunk_lines - 1} +{start},{hunk_lines - 1} @@")
        lines.extend(f" line {start + j}" for j in range(hunk_lines - 1))
    return "\n".join(lines)


class MemoryStore(BaseCheckpointStore):
    """Keeps every saved snapshot so tests can inspect checkpoint history."""

    def __init__(self, fail=False):
        self.snapshots = []
        self.fail = fail

    def read(self):
        return self.snapshots[-1] if self.snapshots else None

    def save(self, session):
        if self.fail:
            return WriteFailed("disk full")
        self.snapshots.append(Session.from_dict(session.to_dict()))
        return Written()

    def _delete(self):
        self.snapshots.clear()


def items():
    return [
        WorkItem("src/a.py", SMALL_PATCH),
        WorkItem("assets/logo.png", None),
        WorkItem("data/big.txt", big_patch()),
    ]


@pytest.fixture
def sleep():
    return AsyncMock()


class TestRun:
    @pytest.mark.asyncio
    async def test_mixed_worklist(self, sleep):
        store = MemoryStore()
        session = Session.start(KEY, total_files=3)
        scheduler = BatchScheduler(store, PipelineConfig(), sleep=sleep)

        diff = await scheduler.run(items(), session, batch_size=2)

        assert "diff --git a/src/a.py b/src/a.py\n--- a/src/a.py\n+++ b/src/a.py\n@@ -1,2 +1,3 @@" in diff
        assert f"@@ {PLACEHOLDER_NO_PATCH} @@" in diff
        assert diff.count("diff --git a/data/big.txt b/data/big.txt") == 4
        assert session.processed_files == ["src/a.py", "assets/logo.png", "data/big.txt"]
        assert session.completed is True
        assert session.current_batch == 2
        assert scheduler.stats.verbatim == 1
        assert scheduler.stats.placeholders == 1
        assert scheduler.stats.split == 1

    @pytest.mark.asyncio
    async def test_delay_only_between_batches(self, sleep):
        scheduler = BatchScheduler(MemoryStore(), PipelineConfig(), sleep=sleep)
        await scheduler.run(items(), Session.start(KEY, 3), batch_size=1, inter_batch_delay=1.5)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.5)

    @pytest.mark.asyncio
    async def test_single_batch_never_sleeps(self, sleep):
        scheduler = BatchScheduler(MemoryStore(), PipelineConfig(), sleep=sleep)
        await scheduler.run(items(), Session.start(KEY, 3), batch_size=10)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_batch_settings_from_config(self, sleep):
        config = PipelineConfig(file_batch_size=1, file_batch_delay=0.25)
        session = Session.start(KEY, 3)
        await BatchScheduler(MemoryStore(), config, sleep=sleep).run(items(), session)

        assert session.current_batch == 3
        sleep.assert_awaited_with(0.25)

    @pytest.mark.asyncio
    async def test_checkpoint_after_every_file(self, sleep):
        store = MemoryStore()
        await BatchScheduler(store, PipelineConfig(), sleep=sleep).run(items(), Session.start(KEY, 3), batch_size=2)

        lengths = [len(s.processed_files) for s in store.snapshots]
        assert lengths == sorted(lengths)
        assert {1, 2, 3} <= set(lengths)
        assert store.snapshots[-1].completed is True

    @pytest.mark.asyncio
    async def test_empty_worklist(self, sleep):
        session = Session.start(KEY, 0)
        diff = await BatchScheduler(MemoryStore(), PipelineConfig(), sleep=sleep).run([], session)
        assert diff == ""
        assert session.completed is True


class TestResume:
    @pytest.mark.asyncio
    async def test_skips_processed_files_and_prefixes_manifest(self, sleep):
        store = MemoryStore()
        session = Session.start(KEY, total_files=3)
        session.processed_files = ["src/a.py"]
        session.current_batch = 1

        scheduler = BatchScheduler(store, PipelineConfig(), sleep=sleep)
        diff = await scheduler.run(items(), session, batch_size=2)

        assert diff.startswith("# Previously processed 1 files\n# Files: src/a.py\n")
        assert "+++ b/src/a.py" not in diff
        assert session.processed_files == ["src/a.py", "assets/logo.png", "data/big.txt"]
        assert session.current_batch == 2
        assert scheduler.stats.skipped_resumed == 1

    @pytest.mark.asyncio
    async def test_processed_files_only_grow(self, sleep):
        store = MemoryStore()
        session = Session.start(KEY, total_files=3)
        session.processed_files = ["assets/logo.png"]

        await BatchScheduler(store, PipelineConfig(), sleep=sleep).run(items(), session, batch_size=1)

        previous = ["assets/logo.png"]
        for snapshot in store.snapshots:
            assert snapshot.processed_files[: len(previous)] == previous
            assert len(snapshot.processed_files) <= snapshot.total_files
            previous = snapshot.processed_files

    @pytest.mark.asyncio
    async def test_fully_processed_session_yields_manifest_only(self, sleep):
        session = Session.start(KEY, total_files=3)
        session.processed_files = ["src/a.py", "assets/logo.png", "data/big.txt"]

        diff = await BatchScheduler(MemoryStore(), PipelineConfig(), sleep=sleep).run(items(), session)

        assert diff == "# Previously processed 3 files\n# Files: src/a.py, assets/logo.png, data/big.txt\n"
        assert session.completed is True


class TestFailures:
    @pytest.mark.asyncio
    async def test_item_failure_becomes_placeholder(self, mocker, sleep):
        mocker.patch("hunkwise_core.scheduler.split_patch", side_effect=RuntimeError("boom"))
        session = Session.start(KEY, 3)
        scheduler = BatchScheduler(MemoryStore(), PipelineConfig(), sleep=sleep)

        diff = await scheduler.run(items(), session)

        assert f"diff --git a/data/big.txt b/data/big.txt\n--- a/data/big.txt\n+++ b/data/big.txt\n@@ {PLACEHOLDER_ERROR} @@" in diff
        assert "+++ b/src/a.py" in diff
        assert "data/big.txt" in session.processed_files
        assert scheduler.stats.failed == 1
        assert session.completed is True

    @pytest.mark.asyncio
    async def test_checkpoint_write_failure_does_not_stop_run(self, sleep):
        session = Session.start(KEY, 3)
        scheduler = BatchScheduler(MemoryStore(fail=True), PipelineConfig(), sleep=sleep)

        diff = await scheduler.run(items(), session)

        assert "+++ b/src/a.py" in diff
        assert len(session.processed_files) == 3
        assert scheduler.stats.checkpoint_failures > 0
