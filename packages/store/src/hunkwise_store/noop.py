"""No-op store: checkpointing disabled (``checkpoint: none``).

Every run starts fresh.
"""

from __future__ import annotations

from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import CheckpointResult, Session, Written


class NoOpStore(BaseCheckpointStore):
    def read(self) -> Session | None:
        return None

    def save(self, session: Session) -> CheckpointResult:
        return Written()  # intentional no-op

    def _delete(self) -> None:
        pass
