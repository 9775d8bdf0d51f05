"""Validation pipeline.

Orchestrates one request end to end:
    1. Reject unsupported input, resolve API key and model (no other work
       happens when configuration is missing)
    2. Extract document text and gather context concurrently
    3. Build the prompt, invoke the model once, normalize the response

Each operation can be awaited directly or started as a cancellable
ValidationRequest. Cancelling a request still releases the OCR engine and
the model client.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

from hazmat_common import (
    ConfigurationError,
    ExtractionFailure,
    InferenceError,
    InputRejected,
    MalformedResponse,
    get_logger,
    get_settings,
    instrument_function,
)
from hazmat_contracts import (
    PipelineStage,
    ScreenshotIdentity,
    SdsExtraction,
    ShipmentData,
    Suggestion,
    ValidationResult,
    enabled_checks,
)
from hazmat_documents import DocumentExtractionService, ProgressCallback, UploadedFile
from hazmat_inference import ComplianceAnalyzer, GeminiClient, InlineImage, LLMClient
from hazmat_knowledge import KnowledgeConnector, KnowledgeSessionPool
from hazmat_storage import ModelTask, SettingsStore

from hazmat_pipeline.context import ContextBuilder
from hazmat_pipeline.request import ValidationRequest

logger = get_logger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[str], LLMClient]


async def resolve_api_key() -> str:
    """Stored API key, else the environment fallback.

    Raises:
        ConfigurationError: If neither is set
    """
    api_key = await SettingsStore.get_api_key() or get_settings().google_api_key
    if not api_key:
        raise ConfigurationError(
            "Gemini API key not set. Run 'hazmat-kb config set-key' or set GOOGLE_API_KEY."
        )
    return api_key


class ValidationPipeline:
    """Shipment, screenshot and SDS validation flows.

    Example:
        >>> async with KnowledgeSessionPool() as pool:
        ...     pipeline = ValidationPipeline.from_settings(pool)
        ...     result = await pipeline.validate_shipment(shipment)
        ...     print(result.status)
    """

    def __init__(
        self,
        context: ContextBuilder,
        extraction: DocumentExtractionService,
        client_factory: ClientFactory = GeminiClient,
        sds_max_chars: Optional[int] = None,
    ):
        self.context = context
        self.extraction = extraction
        self.client_factory = client_factory
        self.sds_max_chars = sds_max_chars or get_settings().sds_max_chars

    @classmethod
    def from_settings(cls, pool: KnowledgeSessionPool) -> "ValidationPipeline":
        return cls(
            context=ContextBuilder(
                KnowledgeConnector(
                    pool, fetch_timeout_ms=get_settings().knowledge_fetch_timeout_ms
                )
            ),
            extraction=DocumentExtractionService.from_settings(),
        )

    # -- Cancellable entry points ---------------------------------------

    def start_validation(
        self,
        shipment: ShipmentData,
        document: Optional[UploadedFile] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ValidationRequest:
        request = ValidationRequest("shipment")
        request.attach(
            asyncio.create_task(
                self.validate_shipment(shipment, document, on_progress, request=request)
            )
        )
        return request

    def start_screenshot(self, image: UploadedFile) -> ValidationRequest:
        request = ValidationRequest("screenshot")
        request.attach(asyncio.create_task(self.validate_screenshot(image, request=request)))
        return request

    def start_sds(
        self, upload: UploadedFile, on_progress: Optional[ProgressCallback] = None
    ) -> ValidationRequest:
        request = ValidationRequest("sds")
        request.attach(asyncio.create_task(self.parse_sds(upload, on_progress, request=request)))
        return request

    # -- Operations -------------------------------------------------------

    @instrument_function("validate_shipment")
    async def validate_shipment(
        self,
        shipment: ShipmentData,
        document: Optional[UploadedFile] = None,
        on_progress: Optional[ProgressCallback] = None,
        request: Optional[ValidationRequest] = None,
    ) -> ValidationResult:
        """Validate a shipment, optionally against a supporting document.

        Raises:
            InputRejected: If the document type is unsupported
            ConfigurationError: If no API key is configured
            ExtractionFailure: If the document can't be read
            InferenceError: If the model call fails
            MalformedResponse: If the response can't be normalized
        """
        request = request or ValidationRequest("shipment")
        with request.tracking():
            if document is not None:
                _require_supported(document)
            api_key = await resolve_api_key()
            model_id = await SettingsStore.get_model(ModelTask.VALIDATION)
            checks = enabled_checks(await SettingsStore.get_rule_toggles())

            logger.info(
                "shipment_validation_started",
                request_id=request.id,
                carrier=shipment.carrier,
                mode=shipment.mode,
                un_number=shipment.un_number,
                model=model_id,
                has_document=document is not None,
            )

            context_task = asyncio.create_task(self.context.build_block())
            try:
                document_text = None
                if document is not None:
                    document_text = await self._extract(request, document, on_progress)
                request.advance(PipelineStage.BUILDING_CONTEXT)
                context_block = await context_task
            finally:
                if not context_task.done():
                    context_task.cancel()
                    await asyncio.gather(context_task, return_exceptions=True)

            async with self._analyzer(api_key) as analyzer:
                return await self._invoke(
                    request,
                    analyzer.validate(
                        shipment,
                        context_block,
                        model_id,
                        checks=checks,
                        document_text=document_text,
                    ),
                )

    @instrument_function("validate_screenshot")
    async def validate_screenshot(
        self,
        image: UploadedFile,
        request: Optional[ValidationRequest] = None,
    ) -> ValidationResult:
        """Validate the declaration shown in a screenshot (two-stage).

        Stage 1 identifies the commodity from the image alone. Stage 2 feeds
        the identified terms to the knowledge servers' search tools while
        resources and local documents load. A stage-1 failure only loses the
        search-seeded context.

        Raises:
            InputRejected: If the file isn't an image
            ConfigurationError: If no API key is configured
            InferenceError: If the final model call fails
            MalformedResponse: If the final response can't be normalized
        """
        request = request or ValidationRequest("screenshot")
        with request.tracking():
            if not image.is_image:
                raise InputRejected(
                    f"Screenshot must be an image, got {image.media_type} ({image.name})"
                )
            api_key = await resolve_api_key()
            model_id = await SettingsStore.get_model(ModelTask.OCR)
            checks = enabled_checks(await SettingsStore.get_rule_toggles())
            inline = InlineImage(data=image.data, media_type=image.media_type)

            async with self._analyzer(api_key) as analyzer:

                request.advance(PipelineStage.BUILDING_CONTEXT)
                identity = await _identify(analyzer, inline, model_id)
                search_terms = identity.search_terms() if identity else []
                context_block = await self.context.build_block(search_terms)

                return await self._invoke(
                    request,
                    analyzer.validate_screenshot(
                        inline, context_block, model_id, identity=identity, checks=checks
                    ),
                )

    @instrument_function("parse_sds")
    async def parse_sds(
        self,
        upload: UploadedFile,
        on_progress: Optional[ProgressCallback] = None,
        request: Optional[ValidationRequest] = None,
    ) -> SdsExtraction:
        """Extract shipping fields from a Safety Data Sheet.

        Raises:
            InputRejected: If the file type is unsupported
            ConfigurationError: If no API key is configured
            ExtractionFailure: If the document can't be read
            InferenceError: If the model call fails
            MalformedResponse: If the response has no usable JSON
        """
        request = request or ValidationRequest("sds")
        with request.tracking():
            _require_supported(upload)
            api_key = await resolve_api_key()
            model_id = await SettingsStore.get_model(ModelTask.EXTRACTION)

            text = await self._extract(request, upload, on_progress)

            async with self._analyzer(api_key) as analyzer:
                return await self._invoke(
                    request,
                    analyzer.extract_sds_fields(text, model_id, max_chars=self.sds_max_chars),
                )

    @instrument_function("suggest_field")
    async def suggest_field(self, shipment: ShipmentData, field: str) -> list[Suggestion]:
        """Suggest values for one shipment field (empty on model failure).

        Raises:
            ConfigurationError: If no API key is configured
        """
        api_key = await resolve_api_key()
        model_id = await SettingsStore.get_model(ModelTask.SUGGESTIONS)

        async with self._analyzer(api_key) as analyzer:
            return await analyzer.suggest(shipment, field, model_id)

    # -- Stage helpers ----------------------------------------------------

    @asynccontextmanager
    async def _analyzer(self, api_key: str) -> AsyncIterator[ComplianceAnalyzer]:
        client = self.client_factory(api_key)
        try:
            yield ComplianceAnalyzer(client)
        finally:
            await client.close()

    async def _extract(
        self,
        request: ValidationRequest,
        upload: UploadedFile,
        on_progress: Optional[ProgressCallback],
    ) -> str:
        request.advance(PipelineStage.EXTRACTING)
        try:
            text = await self.extraction.extract_text(upload, on_progress)
        except (InputRejected, ExtractionFailure) as e:
            request.fail(PipelineStage.EXTRACTION_FAILED, e)
            raise
        request.advance(PipelineStage.EXTRACTION_COMPLETE)
        return text

    async def _invoke(self, request: ValidationRequest, call: Awaitable[T]) -> T:
        request.advance(PipelineStage.INVOKING)
        try:
            result = await call
        except InferenceError as e:
            request.fail(PipelineStage.INVOKE_FAILED, e)
            raise
        except MalformedResponse as e:
            request.fail(PipelineStage.PARSE_FAILED, e)
            raise
        request.advance(PipelineStage.COMPLETE)
        return result


def _require_supported(upload: UploadedFile) -> None:
    if not upload.is_supported:
        raise InputRejected(
            f"Unsupported file type {upload.media_type} ({upload.name}). "
            "Upload a PDF or an image."
        )


async def _identify(
    analyzer: ComplianceAnalyzer, image: InlineImage, model_id: str
) -> Optional[ScreenshotIdentity]:
    try:
        return await analyzer.identify_screenshot(image, model_id)
    except (InferenceError, MalformedResponse) as e:
        logger.warning("screenshot_identify_failed", category=e.category, error=str(e))
        return None
