"""Abstract base class for LLM clients.

Provides a common interface for hosted model backends used for compliance
analysis. Calls are single-shot: no retries, no streaming.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class InlineImage:
    """Image sent alongside a prompt."""

    data: bytes
    media_type: str


@dataclass
class GenerationResult:
    """Text returned by one model call plus token counts when reported."""

    text: str
    model_id: str
    prompt_tokens: Optional[int] = None
    candidate_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    @property
    def has_usage(self) -> bool:
        return self.prompt_tokens is not None or self.candidate_tokens is not None


class LLMClient(ABC):
    """Abstract base for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model_id: str,
        image: Optional[InlineImage] = None,
    ) -> GenerationResult:
        """Issue one generation request.

        Args:
            prompt: Prompt text
            model_id: Provider model identifier
            image: Optional image to send before the prompt

        Returns:
            GenerationResult with raw text

        Raises:
            InferenceError: On transport or authentication failure
        """

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (HTTP clients, etc.)."""

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
