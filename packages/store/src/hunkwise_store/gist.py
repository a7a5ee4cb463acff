"""GistStore: checkpoints that survive ephemeral CI runners.

A job that times out on a huge pull request can be re-run on a fresh
runner and pick up where the previous attempt stopped. The token needs the
'gist' scope. The built-in Actions GITHUB_TOKEN does not have it, so CI
needs a PAT stored as a secret.

Data format: a single JSON file named ``hunkwise_checkpoint.json`` inside
the gist, holding one serialized Session.
"""

from __future__ import annotations

import json
import logging

from github import Github, InputFileContent

from hunkwise_store.base import BaseCheckpointStore
from hunkwise_store.models import CheckpointResult, Session, WriteFailed, Written

logger = logging.getLogger(__name__)

_GIST_FILENAME = "hunkwise_checkpoint.json"


class GistStore(BaseCheckpointStore):
    """Stores the current session in a GitHub Gist.

    Every save() is one gist edit, which makes the file-batch size the knob
    that bounds API usage: the scheduler checkpoints once per file.
    """

    def __init__(self, gist_id: str, token: str):
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def read(self) -> Session | None:
        try:
            gist = self._get_gist()
            file_obj = gist.files.get(_GIST_FILENAME)
        except Exception as e:
            logger.warning("GistStore.read() failed (%s): %s", type(e).__name__, e)
            return None
        if file_obj is None:
            return None
        try:
            data = json.loads(file_obj.content or "null")
        except (json.JSONDecodeError, TypeError):
            return None
        if not isinstance(data, dict):
            return None
        return Session.from_dict(data)

    def save(self, session: Session) -> CheckpointResult:
        try:
            gist = self._get_gist()
            gist.edit(files={_GIST_FILENAME: InputFileContent(json.dumps(session.to_dict(), indent=2))})
        except Exception as e:
            logger.warning("GistStore.save() failed (%s): %s", type(e).__name__, e)
            return WriteFailed(f"{type(e).__name__}: {e}")
        return Written()

    def _delete(self) -> None:
        gist = self._get_gist()
        gist.edit(files={_GIST_FILENAME: None})
