"""Checkpoint data models.

A Session is the whole persisted record of one resumable review run. Stores
read and write it as a single unit; no component updates individual fields
in storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SessionKey:
    """Identity of a review target: one pull request in one repository."""

    repository: str  # "owner/name"
    pr_number: int

    def __str__(self) -> str:
        return f"{self.repository}#{self.pr_number}"


@dataclass
class CommentRecord:
    """A computed review comment kept in the session for audit and export."""

    path: str
    line: int
    body: str
    side: str = "RIGHT"


@dataclass
class Session:
    """Progress of one review run.

    ``processed_files`` is append-only during a run and never holds the same
    identifier twice, so its length never exceeds ``total_files``.
    """

    repository: str
    pr_number: int
    total_files: int
    processed_files: list[str] = field(default_factory=list)
    all_comments: list[CommentRecord] = field(default_factory=list)
    current_batch: int = 0
    timestamp: str = field(default_factory=_utcnow)
    completed: bool = False

    @classmethod
    def start(cls, key: SessionKey, total_files: int) -> Session:
        return cls(repository=key.repository, pr_number=key.pr_number, total_files=total_files)

    @property
    def key(self) -> SessionKey:
        return SessionKey(self.repository, self.pr_number)

    def is_processed(self, file_id: str) -> bool:
        return file_id in self.processed_files

    def mark_processed(self, file_id: str) -> bool:
        """Record a file as processed. Returns False if it already was."""
        if file_id in self.processed_files:
            return False
        self.processed_files.append(file_id)
        self.timestamp = _utcnow()
        return True

    def mark_completed_if_done(self) -> bool:
        if len(self.processed_files) >= self.total_files:
            self.completed = True
            self.timestamp = _utcnow()
        return self.completed

    def to_dict(self) -> dict:
        return {
            "repository": self.repository,
            "pr_number": self.pr_number,
            "processed_files": list(self.processed_files),
            "all_comments": [
                {"path": c.path, "line": c.line, "body": c.body, "side": c.side} for c in self.all_comments
            ],
            "current_batch": self.current_batch,
            "total_files": self.total_files,
            "timestamp": self.timestamp,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Session:
        return cls(
            repository=d.get("repository", ""),
            pr_number=d.get("pr_number", 0),
            total_files=d.get("total_files", 0),
            processed_files=list(d.get("processed_files", [])),
            all_comments=[
                CommentRecord(
                    path=c.get("path", ""),
                    line=c.get("line", 0),
                    body=c.get("body", ""),
                    side=c.get("side", "RIGHT"),
                )
                for c in d.get("all_comments", [])
            ],
            current_batch=d.get("current_batch", 0),
            timestamp=d.get("timestamp", ""),
            completed=d.get("completed", False),
        )


# ---------------------------------------------------------------------------
# Lookup and write outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Fresh:
    """No checkpoint exists; start a new session."""


@dataclass(frozen=True)
class ResumableMatch:
    """An incomplete checkpoint exists for the same target."""

    session: Session


@dataclass(frozen=True)
class StaleMismatch:
    """A checkpoint exists but belongs to another target or already completed."""

    session: Session


SessionLookup = Fresh | ResumableMatch | StaleMismatch


@dataclass(frozen=True)
class Written:
    """The checkpoint reached durable storage."""


@dataclass(frozen=True)
class WriteFailed:
    """The checkpoint could not be written; the run continues without it."""

    reason: str


CheckpointResult = Written | WriteFailed
