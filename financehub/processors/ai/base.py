from __future__ import annotations

from abc import ABC, abstractmethod


class GenerationError(Exception):
    """Base error for a failed LLM generation call.

    ``retryable`` is False for failures a repeat call cannot fix, such as a
    missing API key.
    """

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class GenerationTimeout(GenerationError):
    """The call did not finish within the configured timeout."""


class GenerationAPIError(GenerationError):
    """Transport, HTTP or empty-response failure from the LLM service."""


class AIClient(ABC):
    """Abstract chat-completion client used by the content generator."""

    name: str = "base"

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str, *, timeout: float = 60) -> str:
        """Return the raw text of one completion for the given prompts."""


# Raised while decoding or walking an unexpected response body
MALFORMED_RESPONSE_ERRORS = (ValueError, AttributeError, KeyError, IndexError, TypeError)
