"""LLM text generator — turns a prompt into post text, or ``None`` when unavailable."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

# ── System prompt shared by every provider ─────────────────────────────────
_SYSTEM_PROMPT = (
    "You write short Japanese social media posts about news. "
    "Output only the post body, with no preamble or explanation."
)


class TextGenerator(Protocol):
    def generate_text(self, prompt: str) -> str | None:
        ...


class LLMTextGenerator:
    """Provider-agnostic generator. Ships with Gemini (REST) and OpenAI.

    A missing API key is a normal state, not an error: every call then
    returns ``None`` and callers fall back to templates.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        *,
        temperature: float = 0.8,
        max_tokens: int = 200,
        timeout: int = 30,
    ) -> None:
        self._provider = provider.lower()
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._client: Any = None
        self._session: requests.Session | None = None

        if not api_key:
            logger.warning("No API key for LLM provider '%s' — posts will use fallback templates.", provider)
            return

        if self._provider == "openai":
            self._client = OpenAI(api_key=api_key, timeout=timeout)
        elif self._provider == "gemini":
            self._session = requests.Session()
        else:
            logger.warning("Unknown LLM_PROVIDER '%s'; using fallback templates.", provider)

    @property
    def available(self) -> bool:
        return self._client is not None or self._session is not None

    # ── public ──────────────────────────────────────────────────────────

    def generate_text(self, prompt: str) -> str | None:
        """Return generated text, or ``None`` if the provider is unavailable or failed."""
        if self._client is not None:
            return self._openai(prompt)
        if self._session is not None:
            return self._gemini(prompt)
        return None

    # ── private ─────────────────────────────────────────────────────────

    def _openai(self, prompt: str) -> str | None:
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            content = resp.choices[0].message.content
        except OpenAIError as exc:
            logger.error("OpenAI request failed: %s", exc)
            return None
        except IndexError:
            logger.error("OpenAI returned no choices")
            return None
        return self._clean(content)

    def _gemini(self, prompt: str) -> str | None:
        body = {
            "systemInstruction": {"parts": [{"text": _SYSTEM_PROMPT}]},
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": self._max_tokens,
                "temperature": self._temperature,
            },
        }
        try:
            resp = self._session.post(  # type: ignore[union-attr]
                _GEMINI_URL.format(model=self._model),
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", exc)
            return None

        if resp.status_code != 200:
            logger.error("Gemini API returned %s: %s", resp.status_code, resp.text[:500])
            return None

        try:
            data: dict[str, Any] = resp.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.error("Unexpected Gemini response shape: %s", resp.text[:500])
            return None
        return self._clean(text)

    @staticmethod
    def _clean(raw: str | None) -> str | None:
        """Strip whitespace and wrapping quotes; empty output counts as no output."""
        if not raw:
            return None
        text = raw.strip().strip("「」\"'").strip()
        return text or None
