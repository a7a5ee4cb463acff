"""Split oversized file patches into bounded, standalone fragments.

Whole hunks are packed greedily into chunks of at most ``max_lines`` body
lines. Hunks are never split: diff renderers and the review API need intact
hunks, so a single hunk above the ceiling gets a chunk of its own.

Patches with at most one hunk header cannot be packed. They are cut into
fixed windows of ``max_lines`` lines instead. When the patch starts with
its only hunk header, every window gets a recomputed ``@@`` header so the
lines stay addressable; otherwise the windows carry an inert marker.
"""

from __future__ import annotations

import logging
import math
import re

from hunkwise_core.models import Chunk

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def file_header(file_id: str) -> str:
    """Synthetic header that lets a fragment parse as its own file patch."""
    return f"diff --git a/{file_id} b/{file_id}\n--- a/{file_id}\n+++ b/{file_id}\n"


def split_patch(file_id: str, patch: str, max_lines: int = 5000) -> list[Chunk]:
    """Split ``patch`` into ordered chunks of at most ``max_lines`` lines each."""
    if max_lines < 1:
        raise ValueError(f"max_lines must be positive, got {max_lines}")

    lines = patch.split("\n")
    boundaries = [i for i, line in enumerate(lines) if HUNK_HEADER_RE.match(line)]

    if len(boundaries) <= 1:
        chunks = _split_windows(file_id, lines, boundaries, max_lines)
    else:
        chunks = _pack_hunks(file_id, _hunks(lines, boundaries), max_lines)

    logger.info("Split %s into %d chunk(s)", file_id, len(chunks))
    return chunks


def _hunks(lines: list[str], boundaries: list[int]) -> list[list[str]]:
    # Anything before the first header stays attached to the first hunk.
    starts = [0] + boundaries[1:]
    ends = boundaries[1:] + [len(lines)]
    return [lines[start:end] for start, end in zip(starts, ends)]


def _pack_hunks(file_id: str, hunks: list[list[str]], max_lines: int) -> list[Chunk]:
    bodies: list[list[str]] = []
    current: list[str] = []

    for hunk in hunks:
        if current and len(current) + len(hunk) > max_lines:
            bodies.append(current)
            current = []
        current = current + hunk

    if current:
        bodies.append(current)

    total = len(bodies)
    chunks = []
    for index, body_lines in enumerate(bodies, 1):
        body = "\n".join(body_lines)
        chunks.append(Chunk(file_id=file_id, index=index, total=total, text=file_header(file_id) + body, body=body))
    return chunks


def _split_windows(file_id: str, lines: list[str], boundaries: list[int], max_lines: int) -> list[Chunk]:
    total = math.ceil(len(lines) / max_lines)
    addressable = boundaries == [0]

    if addressable:
        header = HUNK_HEADER_RE.match(lines[0])
        old_line, new_line = int(header.group(1)), int(header.group(3))

    chunks = []
    for index in range(1, total + 1):
        window = lines[(index - 1) * max_lines : index * max_lines]
        body = "\n".join(window)
        marker = f"chunk {index}/{total}"

        content = window[1:] if addressable and index == 1 else window
        if not addressable or not content:
            text = f"{file_header(file_id)}@@ {marker} @@\n{body}"
        else:
            old_count, new_count = _count_sides(content)
            hunk_header = f"@@ -{old_line},{old_count} +{new_line},{new_count} @@ {marker}"
            text = f"{file_header(file_id)}{hunk_header}\n" + "\n".join(content)
            old_line += old_count
            new_line += new_count

        chunks.append(Chunk(file_id=file_id, index=index, total=total, text=text, body=body))
    return chunks


def _count_sides(lines: list[str]) -> tuple[int, int]:
    """Return (old, new) line counts for a run of hunk body lines."""
    old = new = 0
    for line in lines:
        if line.startswith("+"):
            new += 1
        elif line.startswith("-"):
            old += 1
        elif line.startswith("\\"):
            continue  # "\ No newline at end of file"
        else:
            old += 1
            new += 1
    return old, new
