from __future__ import annotations

import os
from typing import Optional, Sequence

from .base import AIClient


def create_ai_client(*, backend: Optional[str] = None, models: Optional[Sequence[str]] = None) -> AIClient:
    """Create an LLM client based on GENERATION_BACKEND env or explicit value.

    Supported values: "openai" (default), "ollama" or "gemini".
    """
    selected = (backend or os.environ.get("GENERATION_BACKEND", "openai")).lower()

    if selected == "openai":
        from .openai_client import OpenAIClient  # lazy import

        return OpenAIClient(models=models)
    if selected == "ollama":
        from .ollama import OllamaClient  # lazy import

        return OllamaClient()
    if selected == "gemini":
        from .gemini import GeminiClient  # lazy import

        return GeminiClient()

    raise ValueError(
        f"Unsupported GENERATION_BACKEND '{selected}'. Use 'openai', 'ollama' or 'gemini'."
    )
