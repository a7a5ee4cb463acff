"""JsonFileStore: the default checkpoint backend.

One JSON document on local disk (``ai-review-progress.json`` by default)
holding the current session. Suitable for local runs and for CI jobs that
cache the file between attempts of the same workflow.

Writes go to a sibling temporary file first and are moved into place, so a
crash mid-write leaves the previous checkpoint intact.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import CheckpointResult, Session, WriteFailed, Written

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_PATH = "ai-review-progress.json"


class JsonFileStore(BaseCheckpointStore):
    def __init__(self, path: str = DEFAULT_CHECKPOINT_PATH):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Session | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load checkpoint %s: %s", self._path, e)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring checkpoint %s: unexpected top-level %s", self._path, type(data).__name__)
            return None
        return Session.from_dict(data)

    def save(self, session: Session) -> CheckpointResult:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps(session.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error("Failed to save checkpoint %s: %s", self._path, e)
            return WriteFailed(str(e))
        logger.debug(
            "Checkpoint saved: %d/%d files processed", len(session.processed_files), session.total_files
        )
        return Written()

    def _delete(self) -> None:
        self._path.unlink(missing_ok=True)
