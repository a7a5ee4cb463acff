"""Abstract checkpoint store interface.

A store holds at most one session record: the progress of the review run
most recently started from this working directory (or CI cache, or gist).
The pipeline depends on BaseCheckpointStore, not on a concrete backend, so
backends are swappable without touching the scheduler or submitter.

Writes are best-effort. ``save`` never raises; it reports a WriteFailed
result instead so callers can surface a warning without changing control
flow. The design assumes a single writer per session key: two runs against
the same pull request at the same time are not supported.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from hunkwise_store.models import (
    CheckpointResult,
    Fresh,
    ResumableMatch,
    Session,
    SessionKey,
    SessionLookup,
    StaleMismatch,
)

logger = logging.getLogger(__name__)


class BaseCheckpointStore(ABC):
    """Durable record of one in-flight review session."""

    @abstractmethod
    def read(self) -> Session | None:
        """Return the stored session regardless of its key, or None.

        Unreadable or corrupt records are reported as None; never raises.
        """

    @abstractmethod
    def save(self, session: Session) -> CheckpointResult:
        """Overwrite the stored record with ``session``."""

    @abstractmethod
    def _delete(self) -> None:
        """Remove the stored record. May raise; ``clear`` handles errors."""

    def load(self, key: SessionKey) -> Session | None:
        """Return the stored session only if it belongs to ``key``."""
        session = self.read()
        if session is None or session.key != key:
            return None
        return session

    def lookup(self, key: SessionKey) -> SessionLookup:
        """Classify the stored record relative to the run about to start."""
        session = self.read()
        if session is None:
            return Fresh()
        if session.key == key and not session.completed:
            return ResumableMatch(session)
        return StaleMismatch(session)

    def clear(self, key: SessionKey | None = None) -> bool:
        """Delete the stored record.

        With a key, only a record belonging to that key is removed. Returns
        True when a record was deleted.
        """
        session = self.read()
        if session is None:
            return False
        if key is not None and session.key != key:
            return False
        try:
            self._delete()
        except Exception as e:
            logger.warning("Could not clear checkpoint (%s): %s", type(e).__name__, e)
            return False
        return True

    def close(self) -> None:
        """Release any resources held by the store.

        Default is a no-op so callers can always call close() safely.
        """
