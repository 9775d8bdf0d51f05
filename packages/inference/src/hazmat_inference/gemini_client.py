"""Google Gemini client.

Uses the google-genai SDK's async surface. Any failure raised by the SDK
(network, authentication, quota, invalid model) becomes an InferenceError.
"""

from typing import Optional

from google import genai
from google.genai import types

from hazmat_common import ConfigurationError, InferenceError, get_logger

from hazmat_inference.base_client import GenerationResult, InlineImage, LLMClient

logger = get_logger(__name__)


class GeminiClient(LLMClient):
    """Gemini API client.

    Example:
        >>> async with GeminiClient(api_key="...") as client:
        ...     result = await client.generate(prompt, "gemini-2.5-flash")
        ...     print(result.text, result.total_tokens)
    """

    def __init__(self, api_key: str, temperature: float = 0.1):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            temperature: Sampling temperature (lower = more deterministic)

        Raises:
            ConfigurationError: If the API key is empty
        """
        api_key = (api_key or "").strip()
        if not api_key:
            raise ConfigurationError("Gemini API key not set")

        self.temperature = temperature
        self._client = genai.Client(api_key=api_key)
        logger.debug("gemini_client_initialized")

    async def generate(
        self,
        prompt: str,
        model_id: str,
        image: Optional[InlineImage] = None,
    ) -> GenerationResult:
        contents: list = [prompt]
        if image is not None:
            contents = [
                types.Part.from_bytes(data=image.data, mime_type=image.media_type),
                prompt,
            ]

        logger.debug(
            "gemini_generate",
            model=model_id,
            prompt_chars=len(prompt),
            has_image=image is not None,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=model_id,
                contents=contents,
                config=types.GenerateContentConfig(temperature=self.temperature),
            )
        except Exception as e:
            logger.error("gemini_api_error", model=model_id, error=str(e))
            raise InferenceError(f"Gemini API error: {e}") from e

        usage = response.usage_metadata
        result = GenerationResult(
            text=response.text or "",
            model_id=model_id,
            prompt_tokens=usage.prompt_token_count if usage else None,
            candidate_tokens=usage.candidates_token_count if usage else None,
            total_tokens=usage.total_token_count if usage else None,
        )

        logger.info(
            "gemini_generated",
            model=model_id,
            response_chars=len(result.text),
            total_tokens=result.total_tokens,
        )
        return result

    async def close(self) -> None:
        await self._client.aio.aclose()
