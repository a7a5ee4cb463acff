"""Base completion client implementing the Template Method pattern.

All providers share the same call algorithm:
    complete() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

Prompt construction lives in hunkwise_core.analysis and reply parsing in
hunkwise_core.response, so a provider is nothing more than "prompt in,
text out".
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class BaseReviewer(ABC):
    MODEL: str = ""
    TEMPERATURE: float = 0.2
    MAX_RETRIES: int = 3
    RETRY_DELAY: int = 2  # seconds, fixed
    MAX_TOKENS: int = 700

    def __init__(self, model: str | None = None, temperature: float | None = None, max_tokens: int | None = None):
        self.model = model or self.MODEL
        self.temperature = self.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or self.MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, prompt: str) -> str | None:
        """Return the model's raw reply to ``prompt``, or None if every attempt failed."""
        return self._call_with_retry(prompt)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, prompt: str) -> str | None:
        """Try _call_api up to MAX_RETRIES times, sleeping RETRY_DELAY between tries.

        Callers run this in a worker thread, so the blocking sleep does not
        stall the event loop.
        """
        name = type(self).__name__
        last_error: Exception | None = None
        for attempt in range(1, self.MAX_RETRIES + 1):
            if attempt > 1:
                time.sleep(self.RETRY_DELAY)
            try:
                return self._call_api(prompt)
            except Exception as e:
                last_error = e
                logger.warning("%s completion failed (attempt %d/%d): %s", name, attempt, self.MAX_RETRIES, e)

        logger.error("%s gave up after %d attempts: %s", name, self.MAX_RETRIES, last_error)
        return None
