from __future__ import annotations

import logging
import re

from unidiff import PatchedFile, PatchSet, UnidiffParseError

logger = logging.getLogger(__name__)

_FILE_START_RE = re.compile(r"^diff --git ", re.MULTILINE)


def parse_diff(diff_text: str) -> list[PatchedFile]:
    """Parse an assembled diff document into unidiff file entries.

    The whole document is parsed in one pass when possible. If unidiff
    rejects it, each ``diff --git`` section is parsed on its own and the
    sections it still rejects are dropped, so one malformed fragment cannot
    hide every other file from review.
    """
    if not diff_text.strip():
        return []
    try:
        return list(PatchSet(diff_text))
    except UnidiffParseError as e:
        logger.warning("Could not parse assembled diff in one pass (%s); parsing file by file", e)

    files: list[PatchedFile] = []
    for section in _sections(diff_text):
        try:
            files.extend(PatchSet(section))
        except UnidiffParseError as e:
            logger.warning("Dropping unparseable diff section %r: %s", section.split("\n", 1)[0], e)
    return files


def _sections(diff_text: str) -> list[str]:
    starts = [m.start() for m in _FILE_START_RE.finditer(diff_text)]
    ends = starts[1:] + [len(diff_text)]
    return [diff_text[start:end] for start, end in zip(starts, ends)]


def strip_prefix(path: str) -> str:
    """Drop git's ``a/``/``b/`` side prefix from a unidiff file name."""
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path
