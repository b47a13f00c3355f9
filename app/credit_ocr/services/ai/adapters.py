"""
Model invocation adapters.

The pipeline only sees ModelAdapter: it asks for an attachment for the
document, sends one ExtractionRequest, and gets the model's raw text back.
Each attachment mode is one concrete adapter, so changes to the upstream
contract stay inside a single class.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Any

import openai
from openai import AsyncOpenAI

from ...config import Settings
from ...models import (
    Attachment,
    ExtractionRequest,
    ExtractionSchema,
    InlineAttachment,
    ReferenceAttachment,
    UploadedDocument,
)
from ..exceptions import (
    InvocationError,
    RegistrationError,
    UpstreamRejected,
    UpstreamUnavailable,
)
from .prompts import build_inline_attachment
from .staging import safe_filename, staged_document

logger = logging.getLogger(__name__)

# Status codes worth retrying unchanged (besides all 5xx)
RETRYABLE_STATUS_CODES = {408, 409, 429}


def classify_openai_error(
    exc: openai.APIError,
    action: str,
    unavailable_cls: type[UpstreamUnavailable] = UpstreamUnavailable,
) -> InvocationError:
    """
    Map an OpenAI SDK error onto the pipeline's retry classes.

    Args:
        exc: The SDK exception.
        action: What was being attempted, used as the message prefix.
        unavailable_cls: Class to use for transient failures.

    Returns:
        UpstreamUnavailable (or subclass) for network, timeout, rate-limit and
        5xx errors; UpstreamRejected for other 4xx responses.
    """
    if isinstance(exc, openai.APIConnectionError):
        # Includes APITimeoutError
        return unavailable_cls(f"{action}: {exc.__class__.__name__}: {exc}")
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status >= 500 or status in RETRYABLE_STATUS_CODES:
            return unavailable_cls(f"{action}: HTTP {status}: {exc.message}")
        return UpstreamRejected(f"{action}: HTTP {status}: {exc.message}")
    return unavailable_cls(f"{action}: {exc}")


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Create the process-wide OpenAI client from settings."""
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout_seconds,
        max_retries=settings.upstream_max_retries,
    )


# =============================================================================
# Adapter Interface
# =============================================================================


class ModelAdapter(ABC):
    """Replaceable boundary to the external extraction model."""

    mode: str = ""

    @abstractmethod
    def attach(
        self, document: UploadedDocument
    ) -> AbstractAsyncContextManager[Attachment]:
        """
        Produce the attachment for one document.

        Anything acquired for the attachment is released when the context
        exits, on success and on failure alike.
        """

    @abstractmethod
    async def invoke(self, request: ExtractionRequest) -> str:
        """
        Send one extraction request and return the model's raw text.

        Raises:
            UpstreamUnavailable: Transient failure, the caller may retry.
            UpstreamRejected: The service refused the request.
        """

    async def aclose(self) -> None:
        """Release process-wide resources held by the adapter."""


# =============================================================================
# OpenAI Adapters
# =============================================================================


def _file_content_part(attachment: Attachment) -> dict[str, Any]:
    if isinstance(attachment, InlineAttachment):
        return {
            "type": "file",
            "file": {"filename": attachment.filename, "file_data": attachment.data_url},
        }
    return {"type": "file", "file": {"file_id": attachment.file_id}}


class OpenAIModelAdapter(ModelAdapter):
    """Shared chat-completions call for both attachment modes."""

    def __init__(self, client: AsyncOpenAI, model: str, json_mode: bool = True):
        self.client = client
        self.model = model
        self.json_mode = json_mode

    async def invoke(self, request: ExtractionRequest) -> str:
        kwargs: dict[str, Any] = {}
        if self.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": request.instructions},
                            _file_content_part(request.attachment),
                        ],
                    }
                ],
                temperature=0,
                **kwargs,
            )
        except openai.APIError as e:
            logger.warning("Extraction call failed: %s", e)
            raise classify_openai_error(e, "Extraction request failed") from e

        if not response.choices:
            logger.warning("Extraction response contained no choices")
            return ""

        message = response.choices[0].message
        if message.content is None:
            # A refusal carries its text separately; pass it on as the raw output
            return getattr(message, "refusal", None) or ""
        return message.content

    async def aclose(self) -> None:
        await self.client.close()


class InlineModelAdapter(OpenAIModelAdapter):
    """Embeds the document in the request as a base64 data URL."""

    mode = "inline"

    @asynccontextmanager
    async def attach(self, document: UploadedDocument) -> AsyncIterator[InlineAttachment]:
        yield build_inline_attachment(document)


class ReferenceModelAdapter(OpenAIModelAdapter):
    """Uploads the document first and cites the returned file id."""

    mode = "reference"

    async def register(self, path: Path) -> str:
        """
        Upload a staged document to the OpenAI Files API.

        Returns:
            The upstream file id.

        Raises:
            RegistrationError: Network, quota or server failure.
            UpstreamRejected: The file was refused.
        """
        try:
            uploaded = await self.client.files.create(file=path, purpose="user_data")
        except openai.APIError as e:
            logger.warning("Document registration failed: %s", e)
            raise classify_openai_error(
                e, "Document registration failed", unavailable_cls=RegistrationError
            ) from e
        logger.info("Registered %s as upstream file %s", path.name, uploaded.id)
        return uploaded.id

    async def release(self, file_id: str) -> None:
        """Delete an uploaded file. Failure only leaves an orphan upstream."""
        try:
            await self.client.files.delete(file_id)
        except openai.APIError as e:
            logger.warning("Could not delete upstream file %s: %s", file_id, e)
        else:
            logger.debug("Deleted upstream file %s", file_id)

    @asynccontextmanager
    async def attach(
        self, document: UploadedDocument
    ) -> AsyncIterator[ReferenceAttachment]:
        with staged_document(document) as path:
            file_id = await self.register(path)
        try:
            yield ReferenceAttachment(
                file_id=file_id, filename=safe_filename(document.original_name)
            )
        finally:
            await self.release(file_id)


# =============================================================================
# Mock Adapter
# =============================================================================


class MockModelAdapter(ModelAdapter):
    """Answers with the empty schema template. For local development only."""

    mode = "mock"

    def __init__(self, schema: ExtractionSchema):
        self.schema = schema

    @asynccontextmanager
    async def attach(self, document: UploadedDocument) -> AsyncIterator[InlineAttachment]:
        yield build_inline_attachment(document)

    async def invoke(self, request: ExtractionRequest) -> str:
        logger.info("Extracting data (MOCK MODE)")
        return json.dumps(self.schema.template())


# =============================================================================
# Factory
# =============================================================================


def create_model_adapter(settings: Settings, schema: ExtractionSchema) -> ModelAdapter:
    """
    Select the adapter variant for this deployment.

    Args:
        settings: Application settings.
        schema: Extraction schema (used by the mock adapter).

    Returns:
        MockModelAdapter when no API key is configured, otherwise the
        adapter for the configured attachment mode.
    """
    if not settings.openai_api_key:
        logger.warning(
            "OCR service running in MOCK MODE. Set OPENAI_API_KEY in .env for real extraction."
        )
        return MockModelAdapter(schema)

    client = create_openai_client(settings)
    adapter_cls = (
        ReferenceModelAdapter if settings.attachment_mode == "reference" else InlineModelAdapter
    )
    logger.info(
        "Using %s attachment mode with model %s", adapter_cls.mode, settings.openai_model
    )
    return adapter_cls(client, settings.openai_model, json_mode=settings.upstream_json_mode)
