from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from hunkwise_core.providers.base import BaseReviewer

# OpenRouter uses these headers to attribute traffic; other endpoints ignore them.
_DEFAULT_HEADERS = {
    "HTTP-Referer": "https://github.com/actions",
    "X-Title": "AI Code Reviewer",
}


class OpenAIReviewer(BaseReviewer):
    """Any OpenAI-compatible chat endpoint (OpenAI itself, OpenRouter, ...)."""

    MODEL = "deepseek/deepseek-chat-v3-0324"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, base_url: str | None = None, **kwargs):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. Install it with: pip install openai"
            )
        super().__init__(**kwargs)
        self.client = _OpenAI(api_key=api_key, base_url=base_url, default_headers=_DEFAULT_HEADERS)

    def _call_api(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "system", "content": prompt}],
            # Ask for a bare JSON object where the model supports it.
            response_format={"type": "json_object"},
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=1,
            frequency_penalty=0,
            presence_penalty=0,
        )
        return (response.choices[0].message.content or "{}").strip()
