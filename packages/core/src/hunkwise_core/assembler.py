"""Assemble per-file diff fragments into one diff document.

Checkpoints keep file identifiers, not patch bytes. A resumed run therefore
cannot re-present files finished by an earlier attempt; it opens the
document with a manifest of those files instead. Manifest lines start with
``#`` and carry no hunks, so diff parsers treat them as inert preamble and
no comment can ever be validated against an already-finished file.
"""

from __future__ import annotations

from collections.abc import Iterable

from hunkwise_store.models import Session

PLACEHOLDER_NO_PATCH = "File change detected, but diff not available"
PLACEHOLDER_ERROR = "Error retrieving diff"


def reconstruct(session: Session) -> str:
    """Return the manifest of files a previous attempt already processed."""
    if not session.processed_files:
        return ""
    return (
        f"# Previously processed {len(session.processed_files)} files\n"
        f"# Files: {', '.join(session.processed_files)}\n"
    )


def placeholder(file_id: str, note: str = PLACEHOLDER_NO_PATCH) -> str:
    """Fragment for a file whose patch is missing or could not be rendered."""
    return f"diff --git a/{file_id} b/{file_id}\n--- a/{file_id}\n+++ b/{file_id}\n@@ {note} @@"


def assemble(fragments: Iterable[str], manifest: str = "") -> str:
    return manifest + "\n".join(f for f in fragments if f)
