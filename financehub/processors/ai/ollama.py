from __future__ import annotations

import os

import requests

from .base import MALFORMED_RESPONSE_ERRORS, AIClient, GenerationAPIError


class OllamaClient(AIClient):
    """HTTP client for Ollama's generate API.

    Environment:
      - OLLAMA_HOST (default: http://localhost:11434)
      - OLLAMA_MODEL (default: llama3.1:8b-instruct)
    """

    name = "ollama"

    def __init__(self) -> None:
        self.host = os.environ.get("OLLAMA_HOST", "http://localhost:11434").rstrip("/")
        self.model = os.environ.get("OLLAMA_MODEL", "llama3.1:8b-instruct")

    def complete(self, system_prompt: str, user_prompt: str, *, timeout: float = 60) -> str:
        payload = {
            "model": self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": {"temperature": 0.7},
        }
        try:
            resp = requests.post(f"{self.host}/api/generate", json=payload, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise GenerationAPIError(f"Ollama request failed: {exc}") from exc
        # Ollama returns {"response": "..."}
        try:
            return (resp.json().get("response") or "").strip()
        except MALFORMED_RESPONSE_ERRORS as exc:
            raise GenerationAPIError(f"Malformed Ollama response: {exc}") from exc
