"""
Extraction pipeline.

Admission -> request building -> model invocation -> interpretation ->
result assembly. ExtractionPipeline.run is the outer boundary: whatever
happens inside, it returns an AssembledResponse.
"""

import asyncio
import logging
import uuid
from time import perf_counter

from ..config import Settings, get_settings
from ..models import (
    ExtractionResult,
    ExtractionSchema,
    ExtractionSuccess,
    FailureKind,
    UploadedDocument,
)
from .admission import AdmissionPolicy, admit
from .ai.adapters import ModelAdapter, create_model_adapter
from .ai.interpreter import interpret
from .ai.prompts import build_request
from .assembler import (
    AssembledResponse,
    assemble_error,
    assemble_failure,
    assemble_internal_failure,
    assemble_success,
)
from .exceptions import OCRServiceError, UpstreamUnavailable
from .extraction_schema import get_schema

logger = logging.getLogger(__name__)

RAW_LOG_PREVIEW_CHARS = 500


class ExtractionPipeline:
    """
    Runs one document through the extraction steps.

    Holds only read-only collaborators, so a single instance serves
    concurrent requests.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        schema: ExtractionSchema,
        policy: AdmissionPolicy,
        timeout_seconds: float = 60.0,
        raw_output_limit: int = 4000,
        expose_internal_errors: bool = False,
    ):
        """
        Initialize the pipeline.

        Args:
            adapter: Upstream model adapter (inline, reference or fake).
            schema: The schema every result is shaped to.
            policy: Admission rules.
            timeout_seconds: Bound on the whole upstream exchange.
            raw_output_limit: Max characters of raw output in diagnostics.
            expose_internal_errors: Include exception text in 500 responses.
        """
        self.adapter = adapter
        self.schema = schema
        self.policy = policy
        self.timeout_seconds = timeout_seconds
        self.raw_output_limit = raw_output_limit
        self.expose_internal_errors = expose_internal_errors

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionPipeline":
        schema = get_schema(settings.extraction_schema)
        return cls(
            adapter=create_model_adapter(settings, schema),
            schema=schema,
            policy=AdmissionPolicy.from_settings(settings),
            timeout_seconds=settings.upstream_timeout_seconds,
            raw_output_limit=settings.raw_output_limit,
            expose_internal_errors=settings.debug,
        )

    async def _exchange(self, document: UploadedDocument) -> str:
        async with self.adapter.attach(document) as attachment:
            request = build_request(self.schema, attachment)
            return await self.adapter.invoke(request)

    async def extract(self, document: UploadedDocument) -> ExtractionResult:
        """
        Call the model for an admitted document and interpret its answer.

        Raises:
            UpstreamUnavailable: Transient failure or timeout.
            UpstreamRejected: The service refused the request.
        """
        try:
            raw_output = await asyncio.wait_for(
                self._exchange(document), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(
                f"Upstream call timed out after {self.timeout_seconds:g}s"
            ) from e

        return interpret(raw_output, self.schema)

    async def run(
        self,
        content: bytes | None,
        media_type: str | None,
        declared_size: int | None = None,
        filename: str | None = None,
        request_id: str | None = None,
    ) -> AssembledResponse:
        """
        Process one upload end to end.

        Never raises: admission, upstream and interpretation failures and
        unexpected exceptions all come back as diagnostic responses.
        """
        request_id = request_id or uuid.uuid4().hex
        started_at = perf_counter()
        logger.info(
            "OCR start request_id=%s filename=%s media_type=%s bytes=%s mode=%s schema=%s/v%s",
            request_id,
            filename,
            media_type,
            len(content) if content else 0,
            self.adapter.mode,
            self.schema.name,
            self.schema.version,
        )

        try:
            document = admit(
                content,
                media_type,
                declared_size,
                original_name=filename,
                policy=self.policy,
            )
            result = await self.extract(document)
        except OCRServiceError as e:
            logger.warning("OCR request_id=%s failed: %s: %s", request_id, e.kind.value, e)
            response = assemble_error(e, request_id=request_id)
            outcome = e.kind.value
        except Exception as e:
            logger.exception("OCR request_id=%s: unexpected error", request_id)
            response = assemble_internal_failure(
                e, request_id=request_id, expose_details=self.expose_internal_errors
            )
            outcome = "internal_failure"
        else:
            response, outcome = self._assemble_result(result, request_id)

        logger.info(
            "OCR done request_id=%s outcome=%s status=%d duration_ms=%s",
            request_id,
            outcome,
            response.status_code,
            round((perf_counter() - started_at) * 1000, 1),
        )
        return response

    def _assemble_result(
        self, result: ExtractionResult, request_id: str
    ) -> tuple[AssembledResponse, str]:
        if isinstance(result, ExtractionSuccess):
            return assemble_success(result), "success"

        preview = (result.raw or "")[:RAW_LOG_PREVIEW_CHARS]
        if result.kind == FailureKind.NON_JSON_OUTPUT:
            logger.error("Non-JSON OCR output request_id=%s: %r", request_id, preview)
        else:
            logger.error(
                "OCR output schema mismatch request_id=%s: %s; raw=%r",
                request_id,
                "; ".join(result.details),
                preview,
            )
        return (
            assemble_failure(result, self.raw_output_limit, request_id=request_id),
            result.kind.value,
        )

    async def aclose(self) -> None:
        await self.adapter.aclose()


# =============================================================================
# Singleton Factory
# =============================================================================

_pipeline: ExtractionPipeline | None = None


def get_pipeline() -> ExtractionPipeline:
    """Get or create the extraction pipeline singleton."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ExtractionPipeline.from_settings(get_settings())
    return _pipeline


async def close_pipeline() -> None:
    """Close the singleton's upstream client, if one was created."""
    global _pipeline
    if _pipeline is not None:
        await _pipeline.aclose()
        _pipeline = None
