from __future__ import annotations

import re

from github import Github, GithubException, RateLimitExceededException

from hunkwise_core.models import ValidatedComment, WorkItem

_SHA_MARKER_RE = re.compile(r"<!-- hunkwise-sha: ([0-9a-f]{40}) -->")


def sha_marker(head_sha: str) -> str:
    return f"<!-- hunkwise-sha: {head_sha} -->"


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def to_work_item(file) -> WorkItem:
    return WorkItem(
        filename=file.filename,
        patch=getattr(file, "patch", None) or None,
        status=getattr(file, "status", None) or "modified",
        previous_filename=getattr(file, "previous_filename", None),
    )


def list_changed_files(pr) -> list[WorkItem]:
    """Return every file changed in the PR. PyGithub paginates past 100 files."""
    return [to_work_item(f) for f in pr.get_files()]


def compare_revisions(repo, base_sha: str, head_sha: str) -> list[WorkItem]:
    """Return files changed between two commits using GitHub's compare API."""
    comparison = repo.compare(base_sha, head_sha)
    return [to_work_item(f) for f in comparison.files]


def get_last_reviewed_sha(pr) -> str | None:
    """Return the most recent HEAD SHA stored by hunkwise in a review body, or None."""
    last_sha = None
    for review in pr.get_reviews():
        match = _SHA_MARKER_RE.search(review.body or "")
        if match:
            last_sha = match.group(1)
    return last_sha


def submit_review(pr, comments: list[ValidatedComment], body: str = "", event: str = "COMMENT") -> None:
    pr.create_review(body=body, event=event, comments=[c.to_api() for c in comments])


def is_rate_limited(exc: Exception) -> bool:
    """True for primary and secondary rate-limit rejections."""
    if isinstance(exc, RateLimitExceededException):
        return True
    if isinstance(exc, GithubException) and exc.status == 429:
        return True
    return "rate limit" in str(exc).lower()
