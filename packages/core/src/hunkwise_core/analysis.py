"""Per-hunk analysis calls.

Each hunk of every reviewable file is one analysis unit: one prompt, one
completion call, one parsed reply. Units run concurrently up to a fixed
limit. A failed call or a malformed reply costs that unit its comments and
nothing else.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from unidiff import Hunk, PatchedFile

from hunkwise_core.diffparse import strip_prefix
from hunkwise_core.models import CandidateComment
from hunkwise_core.providers.base import BaseReviewer
from hunkwise_core.response import ParseFailure, parse_response
from hunkwise_core.utils.paths import is_reviewable

logger = logging.getLogger(__name__)


@dataclass
class PullRequestInfo:
    title: str = ""
    description: str = ""


@dataclass
class AnalysisResult:
    candidates: list[CandidateComment] = field(default_factory=list)
    units: int = 0
    parse_failures: int = 0
    failed_calls: int = 0


def numbered_changes(hunk: Hunk) -> str:
    """Render hunk lines prefixed with the line number a comment should use."""
    rendered = []
    for record in hunk:
        number = record.source_line_no if record.is_removed else record.target_line_no
        value = record.value.rstrip("\n")
        rendered.append(f"{number} {record.line_type}{value}")
    return "\n".join(rendered)


def build_prompt(path: str, hunk: Hunk, pr: PullRequestInfo, guidelines: str = "") -> str:
    header = f"@@ -{hunk.source_start},{hunk.source_length} +{hunk.target_start},{hunk.target_length} @@"
    if hunk.section_header:
        header += f" {hunk.section_header}"
    guidelines_section = f"\nReview guidelines:\n{guidelines.strip()}\n" if guidelines.strip() else ""
    return f"""Your task is to review pull requests. Instructions:
- Provide the response in following JSON format:  {{"reviews": [{{"lineNumber":  <line_number>, "reviewComment": "<review comment>"}}]}}
- Do not give positive comments or compliments.
- Provide comments and suggestions ONLY if there is something to improve, otherwise "reviews" should be an empty array.
- Write the comment in GitHub Markdown format.
- Use the given description only for the overall context and only comment the code.
- IMPORTANT: NEVER suggest adding comments to the code.
{guidelines_section}
Review the following code diff in the file "{path}" and take the pull request title and description into account when writing the response.

Pull request title: {pr.title}
Pull request description:

---
{pr.description}
---

Git diff to review:

```diff
{header}
{numbered_changes(hunk)}
```
"""  # noqa: E501


def analysis_units(files: list[PatchedFile]) -> list[tuple[str, Hunk]]:
    units = []
    for patched_file in files:
        if patched_file.is_removed_file or patched_file.target_file == "/dev/null":
            continue
        path = strip_prefix(patched_file.target_file)
        if not is_reviewable(path):
            logger.debug("Skipping analysis of non-reviewable file %s", path)
            continue
        for hunk in patched_file:
            units.append((path, hunk))
    return units


class Analyzer:
    def __init__(self, reviewer: BaseReviewer, concurrency: int = 4, guidelines: str = ""):
        self.reviewer = reviewer
        self.concurrency = max(1, concurrency)
        self.guidelines = guidelines

    async def analyze(self, files: list[PatchedFile], pr: PullRequestInfo) -> AnalysisResult:
        units = analysis_units(files)
        result = AnalysisResult(units=len(units))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def analyze_with_semaphore(path: str, hunk: Hunk):
            async with semaphore:
                raw = await asyncio.to_thread(self.reviewer.complete, build_prompt(path, hunk, pr, self.guidelines))
            if raw is None:
                return None
            return parse_response(raw, path)

        outcomes = await asyncio.gather(
            *(analyze_with_semaphore(path, hunk) for path, hunk in units), return_exceptions=True
        )

        for (path, _), outcome in zip(units, outcomes):
            if isinstance(outcome, BaseException):
                result.failed_calls += 1
                logger.error("Analysis of %s failed: %s", path, outcome)
            elif outcome is None:
                result.failed_calls += 1
            elif isinstance(outcome, ParseFailure):
                result.parse_failures += 1
                logger.warning("Could not parse review for %s (%s). Raw reply: %s", path, outcome.reason, outcome.raw)
            else:
                result.candidates.extend(outcome)

        logger.info(
            "Analyzed %d unit(s): %d candidate comment(s), %d parse failure(s), %d failed call(s)",
            result.units,
            len(result.candidates),
            result.parse_failures,
            result.failed_calls,
        )
        return result
