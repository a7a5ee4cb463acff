"""Value types shared across the review pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkItem:
    """One changed file as reported by GitHub.

    ``patch`` is None for binary files and for some renames: GitHub omits the
    textual patch for those.
    """

    filename: str
    patch: str | None = None
    status: str = "modified"
    previous_filename: str | None = None

    @property
    def has_patch(self) -> bool:
        return bool(self.patch)


@dataclass(frozen=True)
class Chunk:
    """One bounded, standalone fragment of an oversized file patch.

    ``text`` is a complete pseudo file patch (``diff --git``/``---``/``+++``
    header followed by hunks). ``body`` is the slice of the original patch it
    carries, and ``line_count`` counts only those body lines.
    """

    file_id: str
    index: int
    total: int
    text: str
    body: str

    @property
    def line_count(self) -> int:
        return len(self.body.split("\n"))


@dataclass(frozen=True)
class CandidateComment:
    """A model-proposed comment, not yet checked against the diff."""

    path: str
    line: int
    body: str


@dataclass(frozen=True)
class ValidatedComment:
    """A comment proven to reference a line visible in the diff.

    ``side`` is GitHub's review-comment side: RIGHT anchors to the new file,
    LEFT to the old one (used for deleted lines).
    """

    path: str
    line: int
    body: str
    side: str = "RIGHT"

    def to_api(self) -> dict:
        return {"path": self.path, "line": self.line, "side": self.side, "body": self.body}
