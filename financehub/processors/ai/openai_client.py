from __future__ import annotations

import os
from typing import List, Optional, Sequence

import requests

from ...utils.logging import get_logger
from .base import MALFORMED_RESPONSE_ERRORS, AIClient, GenerationAPIError

logger = get_logger("sfh.ai.openai")


class OpenAIClient(AIClient):
    """HTTP client for the OpenAI chat completions API.

    Models are tried in order; a failure on one model moves on to the next.

    Environment:
      - OPENAI_API_KEY (required at call time)
      - OPENAI_BASE_URL (default: https://api.openai.com/v1)
      - OPENAI_MODELS (comma separated, overrides the configured list)
    """

    name = "openai"

    def __init__(self, *, models: Optional[Sequence[str]] = None, api_key: Optional[str] = None) -> None:
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.base_url = os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        env_models = [m.strip() for m in os.environ.get("OPENAI_MODELS", "").split(",") if m.strip()]
        self.models: List[str] = env_models or list(models or ["gpt-4", "gpt-3.5-turbo"])

    def _chat(self, model: str, system_prompt: str, user_prompt: str, *, timeout: float) -> str:
        resp = requests.post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "max_tokens": 3000,
                "temperature": 0.7,
            },
            timeout=timeout,
        )
        resp.raise_for_status()
        try:
            choices = resp.json().get("choices") or []
            if not choices:
                return ""
            return (choices[0].get("message", {}).get("content") or "").strip()
        except MALFORMED_RESPONSE_ERRORS as exc:
            raise GenerationAPIError(f"Malformed response from {model}: {exc}") from exc

    def complete(self, system_prompt: str, user_prompt: str, *, timeout: float = 60) -> str:
        if not self.api_key:
            raise GenerationAPIError("OPENAI_API_KEY is not set", retryable=False)
        last_error: Exception | None = None
        for model in self.models:
            try:
                text = self._chat(model, system_prompt, user_prompt, timeout=timeout)
            except (requests.RequestException, GenerationAPIError) as exc:
                last_error = exc
                logger.warning("OpenAI model %s failed: %s", model, exc)
                continue
            if text:
                logger.info("OpenAI model %s returned %d characters", model, len(text))
                return text
            last_error = GenerationAPIError(f"Empty response from {model}")
            logger.warning("OpenAI model %s returned an empty response", model)
        raise GenerationAPIError(f"All OpenAI models failed: {last_error}")
