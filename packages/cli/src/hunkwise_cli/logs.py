"""Logging setup for the command line.

Locally, log records go through rich. Inside GitHub Actions they are written
as workflow commands so warnings and errors show up as run annotations.
"""

from __future__ import annotations

import logging
import os
import sys

from rich.logging import RichHandler

_ANNOTATIONS = (
    (logging.ERROR, "error"),
    (logging.WARNING, "warning"),
    (logging.INFO, "notice"),
)


class ActionsAnnotationFormatter(logging.Formatter):
    """Render records as ``::notice::``, ``::warning::`` or ``::error::`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = next((name for level, name in _ANNOTATIONS if record.levelno >= level), "debug")
        # Workflow commands are single-line.
        return f"::{command}::" + message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def configure_logging(verbose: bool = False) -> logging.Handler:
    level = logging.DEBUG if verbose else logging.INFO

    if in_github_actions():
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ActionsAnnotationFormatter("%(message)s"))
    else:
        handler = RichHandler(show_path=verbose, rich_tracebacks=True, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    for name in ("hunkwise_core", "hunkwise_store", "hunkwise_cli"):
        logging.getLogger(name).setLevel(level)
    return handler
