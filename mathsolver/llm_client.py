"""LLM client with provider fallback.

Provider order (configurable):
1) Groq primary model (fast, high rate limits)
2) Groq fallback model (more capable) if it differs from the primary
3) OpenAI-compatible endpoint (e.g. Baseten) if an API key is configured

Behavior:
- A provider that is not configured is skipped.
- A provider that raises or returns empty text falls through to the next one.
- When every configured provider fails, the last error is raised as AIServiceError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

import httpx

from mathsolver.config import settings
from mathsolver.error_handler import AINotConfiguredError, AIServiceError


logger = logging.getLogger(__name__)


SYSTEM_MESSAGE = "You are a careful mathematics tutor. Follow the requested output format exactly."


@dataclass
class GenerationResult:
    text: str
    provider: str


class GroqProvider:
    def __init__(self, model: str, api_key: Optional[str] = None):
        self.model = model
        self.api_key = api_key if api_key is not None else settings.groq_api_key
        self.name = f"groq:{model}"
        self._client = None

    def is_configured(self) -> bool:
        return bool(self.api_key) and bool(self.model)

    def _get_client(self):
        if self._client is None:
            # Lazy import to avoid any import-time cost.
            from groq import Groq

            self._client = Groq(api_key=self.api_key, timeout=settings.llm_timeout_seconds)
        return self._client

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        resp = self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system or SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            top_p=1,
        )
        return (resp.choices[0].message.content or "").strip()


class OpenAICompatProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_compat_api_key
        self.base_url = base_url or settings.openai_compat_base_url
        self.model = model or settings.openai_compat_model
        self.timeout_s = float(timeout_s or settings.openai_compat_timeout_seconds)
        self.name = f"openai-compat:{self.model}"

    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_url and self.model)

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        url = self.base_url.rstrip("/") + "/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system or SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.llm_temperature,
            "top_p": 1,
            "max_tokens": settings.llm_max_tokens,
        }

        with httpx.Client(timeout=self.timeout_s) as client:
            resp = client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            data = resp.json()

        text = (
            (data.get("choices") or [{}])[0]
            .get("message", {})
            .get("content", "")
        )
        return (text or "").strip()


class LLMClient:
    """Ordered provider chain used for every AI model call"""

    def __init__(self, providers: Optional[list] = None):
        self.providers = providers if providers is not None else default_providers()

    def configured_providers(self) -> list:
        return [p for p in self.providers if p.is_configured()]

    def is_configured(self) -> bool:
        return bool(self.configured_providers())

    def describe(self) -> list[str]:
        return [p.name for p in self.configured_providers()]

    def generate(self, prompt: str, system: Optional[str] = None) -> GenerationResult:
        """Return the first non-empty completion.

        Raises:
            AINotConfiguredError: no provider has credentials
            AIServiceError: every configured provider failed
        """
        providers = self.configured_providers()
        if not providers:
            raise AINotConfiguredError("No LLM provider is configured")

        last_error: Optional[BaseException] = None
        for p in providers:
            try:
                text = p.generate(prompt, system=system)
            except Exception as e:
                logger.warning(f"[AI] Provider {p.name} failed: {type(e).__name__}: {e}")
                last_error = e
                continue
            if text:
                logger.debug(f"[AI] {p.name} answered ({len(text)} chars)")
                return GenerationResult(text=text, provider=p.name)
            logger.warning(f"[AI] Provider {p.name} returned empty text")
            last_error = ValueError(f"{p.name} returned an empty response")

        raise AIServiceError(f"All LLM providers failed: {last_error}", cause=last_error)


def default_providers() -> list:
    providers: list = [GroqProvider(settings.llm_model)]

    fallback = settings.llm_model_fallback
    if fallback and fallback != settings.llm_model:
        providers.append(GroqProvider(fallback))

    providers.append(OpenAICompatProvider())
    return providers
