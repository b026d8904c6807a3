from __future__ import annotations

import os

import requests

from .base import MALFORMED_RESPONSE_ERRORS, AIClient, GenerationAPIError


class GeminiClient(AIClient):
    """HTTP client for Gemini via the Google AI Studio API.

    Environment:
      - GOOGLE_API_KEY (required at call time)
      - GEMINI_MODEL (default: gemini-1.5-flash)
    """

    name = "gemini"

    def __init__(self) -> None:
        self.api_key = os.environ.get("GOOGLE_API_KEY")
        self.model = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")

    def complete(self, system_prompt: str, user_prompt: str, *, timeout: float = 60) -> str:
        if not self.api_key:
            raise GenerationAPIError("GOOGLE_API_KEY is required for Gemini backend", retryable=False)
        url = (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            f"{self.model}:generateContent?key={self.api_key}"
        )
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"parts": [{"text": user_prompt}]}],
            "generationConfig": {"temperature": 0.7},
        }
        try:
            resp = requests.post(url, json=payload, timeout=timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise GenerationAPIError(f"Gemini request failed: {exc}") from exc
        try:
            candidates = resp.json().get("candidates") or []
            if not candidates:
                return ""
            parts = candidates[0].get("content", {}).get("parts") or []
            return "".join(p.get("text", "") for p in parts).strip()
        except MALFORMED_RESPONSE_ERRORS as exc:
            raise GenerationAPIError(f"Malformed Gemini response: {exc}") from exc
