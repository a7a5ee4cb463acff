"""Normalize free-form model replies into candidate comments.

Models are asked for ``{"reviews": [{"lineNumber": .., "reviewComment": ..}]}``
but regularly wrap it in a Markdown fence or add stray backticks. An empty
``reviews`` list means "nothing to flag" and is a normal result; a reply
that does not decode at all is a ParseFailure, which callers log and treat
as zero comments for that unit.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from hunkwise_core.models import CandidateComment

logger = logging.getLogger(__name__)

_EDGE_BACKTICKS_RE = re.compile(r"^`+|`+$")


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    raw: str


def strip_fences(raw: str) -> str:
    """Remove an outer ``` fence (with or without a language tag).

    Only the opener line and a closing fence line are removed, so code
    blocks inside comment values survive.
    """
    text = raw.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines.pop(0)
        if lines and lines[-1].strip() == "```":
            lines.pop()
        text = "\n".join(lines).strip()
    return _EDGE_BACKTICKS_RE.sub("", text).strip()


def parse_response(raw: str, path: str) -> list[CandidateComment] | ParseFailure:
    cleaned = strip_fences(raw)
    try:
        decoded = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseFailure(reason=str(e), raw=raw[:200])

    if isinstance(decoded, dict):
        # Some models drop the wrapper object and return a single review.
        entries = decoded["reviews"] if "reviews" in decoded else [decoded]
    else:
        entries = decoded

    if not isinstance(entries, list):
        return ParseFailure(reason=f"expected a list of reviews, got {type(entries).__name__}", raw=raw[:200])

    comments = []
    for entry in entries:
        comment = _to_candidate(entry, path)
        if comment is None:
            logger.debug("Ignoring malformed review entry for %s: %r", path, entry)
            continue
        comments.append(comment)
    return comments


def _to_candidate(entry, path: str) -> CandidateComment | None:
    if not isinstance(entry, dict):
        return None
    line = entry.get("lineNumber", entry.get("line"))
    body = entry.get("reviewComment", entry.get("comment"))
    if isinstance(line, bool) or not body or not isinstance(body, str):
        return None
    try:
        line = int(line)
    except (TypeError, ValueError):
        return None
    if line <= 0:
        return None
    return CandidateComment(path=path, line=line, body=body)
