"""Compliance analysis on top of an LLM client.

Each operation builds one prompt, makes one model call and parses the
response. Usage and estimated cost are attached to validation results
when the provider reports token counts.
"""

from typing import Optional

from hazmat_common import InferenceError, MalformedResponse, get_logger
from hazmat_contracts import (
    ScreenshotIdentity,
    SdsExtraction,
    ShipmentData,
    Suggestion,
    ValidationResult,
    rules_for,
)

from hazmat_inference.base_client import GenerationResult, InlineImage, LLMClient
from hazmat_inference.cost_estimator import cost_of
from hazmat_inference.prompts import (
    DEFAULT_MAX_DOCUMENT_CHARS,
    format_screenshot_identify_prompt,
    format_screenshot_validation_prompt,
    format_sds_prompt,
    format_suggestion_prompt,
    format_validation_prompt,
)
from hazmat_inference.response_parser import (
    normalize_json_response,
    parse_model,
    parse_suggestions,
)

logger = get_logger(__name__)


class ComplianceAnalyzer:
    """Prompt, invoke and parse for every analysis task.

    Example:
        >>> analyzer = ComplianceAnalyzer(GeminiClient(api_key))
        >>> result = await analyzer.validate(shipment, context_block, "gemini-2.5-flash")
        >>> print(result.status, result.usage.estimated_cost)
    """

    def __init__(self, client: LLMClient):
        self.client = client

    async def validate(
        self,
        shipment: ShipmentData,
        context_block: str,
        model_id: str,
        checks: Optional[list[str]] = None,
        document_text: Optional[str] = None,
    ) -> ValidationResult:
        """Validate a shipment.

        Raises:
            InferenceError: If the model call fails
            MalformedResponse: If the response can't be normalized
        """
        prompt = format_validation_prompt(
            shipment,
            rules_for(shipment.carrier, shipment.mode),
            context_block,
            checks=checks,
            document_text=document_text,
        )
        generation = await self.client.generate(prompt, model_id)
        return self._finish(generation)

    async def validate_screenshot(
        self,
        image: InlineImage,
        context_block: str,
        model_id: str,
        identity: Optional[ScreenshotIdentity] = None,
        checks: Optional[list[str]] = None,
    ) -> ValidationResult:
        """Validate the declaration shown in a screenshot.

        Raises:
            InferenceError: If the model call fails
            MalformedResponse: If the response can't be normalized
        """
        prompt = format_screenshot_validation_prompt(
            context_block,
            search_terms=identity.search_terms() if identity else None,
            checks=checks,
        )
        generation = await self.client.generate(prompt, model_id, image=image)
        return self._finish(generation)

    async def identify_screenshot(
        self, image: InlineImage, model_id: str
    ) -> ScreenshotIdentity:
        """Recover the UN number and shipping name shown in a screenshot."""
        generation = await self.client.generate(
            format_screenshot_identify_prompt(), model_id, image=image
        )
        identity = parse_model(generation.text, ScreenshotIdentity)
        logger.info(
            "screenshot_identified",
            un_number=identity.un_number,
            proper_shipping_name=identity.proper_shipping_name,
        )
        return identity

    async def extract_sds_fields(
        self,
        text: str,
        model_id: str,
        max_chars: int = DEFAULT_MAX_DOCUMENT_CHARS,
    ) -> SdsExtraction:
        """Extract shipping fields from SDS text.

        Raises:
            InferenceError: If the model call fails
            MalformedResponse: If the response has no usable JSON
        """
        if len(text) > max_chars:
            logger.info("sds_text_truncated", chars=len(text), max_chars=max_chars)

        generation = await self.client.generate(format_sds_prompt(text, max_chars), model_id)
        extraction = parse_model(generation.text, SdsExtraction)

        logger.info("sds_fields_extracted", fields=sorted(extraction.found_fields()))
        return extraction

    async def suggest(
        self, shipment: ShipmentData, field: str, model_id: str
    ) -> list[Suggestion]:
        """Suggest up to three values for one shipment field.

        Advisory only: failures are logged and yield an empty list.
        """
        try:
            generation = await self.client.generate(
                format_suggestion_prompt(shipment, field), model_id
            )
            suggestions = parse_suggestions(generation.text)
        except (InferenceError, MalformedResponse) as e:
            logger.warning("suggestion_failed", field=field, error=str(e))
            return []

        logger.info("suggestions_generated", field=field, count=len(suggestions))
        return suggestions

    def _finish(self, generation: GenerationResult) -> ValidationResult:
        result = normalize_json_response(generation.text)

        if generation.has_usage:
            usage = cost_of(
                generation.model_id,
                generation.prompt_tokens or 0,
                generation.candidate_tokens or 0,
                generation.total_tokens,
            )
            result = result.model_copy(update={"usage": usage})
            logger.info(
                "validation_usage",
                model=usage.model_id,
                total_tokens=usage.total_tokens,
                estimated_cost=round(usage.estimated_cost, 6),
            )

        logger.info(
            "validation_parsed", status=result.status.value, issues=len(result.issues)
        )
        return result
