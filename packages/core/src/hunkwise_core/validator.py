"""Gate comments on the lines actually visible in the diff.

GitHub rejects review comments on lines outside the diff, and a rejected
comment can take its whole review batch down with it. Only comments whose
(path, line) pair exists as a change record in the parsed diff pass; the
gate fails closed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from unidiff import PatchedFile

from hunkwise_core.diffparse import strip_prefix
from hunkwise_core.models import CandidateComment, ValidatedComment

logger = logging.getLogger(__name__)


def find_line_side(files: Iterable[PatchedFile], path: str, line: int) -> str | None:
    """Return the review side anchoring ``line`` of ``path``, or None.

    An oversized file shows up as several entries with the same path (one
    per chunk), so every matching entry is scanned. A new-file match
    (addition or context) wins over an old-file match (deletion or context).
    """
    records = [
        record
        for patched_file in files
        if path in (strip_prefix(patched_file.target_file), strip_prefix(patched_file.source_file))
        for hunk in patched_file
        for record in hunk
    ]
    if any(not record.is_removed and record.target_line_no == line for record in records):
        return "RIGHT"
    if any(not record.is_added and record.source_line_no == line for record in records):
        return "LEFT"
    return None


def validate_comments(candidates: list[CandidateComment], files: list[PatchedFile]) -> list[ValidatedComment]:
    known_paths = set()
    for patched_file in files:
        known_paths.add(strip_prefix(patched_file.target_file))
        known_paths.add(strip_prefix(patched_file.source_file))

    valid: list[ValidatedComment] = []
    for comment in candidates:
        if comment.path not in known_paths:
            logger.warning("Skipping comment for %s - file not found in diff", comment.path)
            continue
        side = find_line_side(files, comment.path, comment.line)
        if side is None:
            logger.warning("Skipping comment for %s:%d - line not found in diff", comment.path, comment.line)
            continue
        valid.append(ValidatedComment(path=comment.path, line=comment.line, body=comment.body, side=side))

    logger.info("Validated %d/%d comments", len(valid), len(candidates))
    return valid
