"""LLM backend selection and clients (OpenAI, Ollama, Gemini)."""

from .base import AIClient, GenerationAPIError, GenerationError, GenerationTimeout
from .factory import create_ai_client

__all__ = ["AIClient", "GenerationAPIError", "GenerationError", "GenerationTimeout", "create_ai_client"]
