"""Pytest configuration and fixtures."""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from app.credit_ocr.main import app
from app.credit_ocr.models import ExtractionRequest, UploadedDocument
from app.credit_ocr.services.admission import AdmissionPolicy
from app.credit_ocr.services.ai.adapters import ModelAdapter
from app.credit_ocr.services.ai.prompts import build_inline_attachment
from app.credit_ocr.services.extraction_schema import (
    CREDIT_APPLICATION_SCHEMA,
    LEGAL_BUSINESS_NAME_SCHEMA,
)
from app.credit_ocr.services.pipeline import ExtractionPipeline, get_pipeline

MIB = 1024 * 1024
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class FakeModelAdapter(ModelAdapter):
    """In-memory adapter that records every call."""

    mode = "fake"

    def __init__(
        self,
        response: str = '{"legal_business_name": "Acme Corp"}',
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.response = response
        self.error = error
        self.delay = delay
        self.attached: list[UploadedDocument] = []
        self.released: list[UploadedDocument] = []
        self.requests: list[ExtractionRequest] = []

    @asynccontextmanager
    async def attach(self, document: UploadedDocument):
        self.attached.append(document)
        try:
            yield build_inline_attachment(document)
        finally:
            self.released.append(document)

    async def invoke(self, request: ExtractionRequest) -> str:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_adapter() -> FakeModelAdapter:
    """Adapter answering with a legal-name-only JSON object."""
    return FakeModelAdapter()


@pytest.fixture
def make_adapter() -> Callable[..., FakeModelAdapter]:
    """Factory for adapters with a custom response, error or delay."""
    return FakeModelAdapter


@pytest.fixture
def make_pipeline() -> Callable[..., ExtractionPipeline]:
    """Factory for pipelines around a given adapter."""

    def _make(
        adapter: ModelAdapter,
        schema=LEGAL_BUSINESS_NAME_SCHEMA,
        max_size_bytes: int = 5 * MIB,
        allowed_media_types: frozenset[str] = frozenset({PDF, "application/msword", DOCX}),
        pdf_only: bool = False,
        timeout_seconds: float = 5.0,
        raw_output_limit: int = 4000,
    ) -> ExtractionPipeline:
        return ExtractionPipeline(
            adapter=adapter,
            schema=schema,
            policy=AdmissionPolicy(
                allowed_media_types=allowed_media_types,
                max_size_bytes=max_size_bytes,
                pdf_only=pdf_only,
            ),
            timeout_seconds=timeout_seconds,
            raw_output_limit=raw_output_limit,
        )

    return _make


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_pipeline() -> Generator[Callable[[ExtractionPipeline], ExtractionPipeline], None, None]:
    """Route requests through the given pipeline instead of the singleton."""

    def _use(pipeline: ExtractionPipeline) -> ExtractionPipeline:
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
def legal_name_schema():
    return LEGAL_BUSINESS_NAME_SCHEMA


@pytest.fixture
def credit_schema():
    return CREDIT_APPLICATION_SCHEMA


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Acme Corp) Tj
ET
endstream
endobj
xref
0 5
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
0000000214 00000 n
trailer
<< /Size 5 /Root 1 0 R >>
startxref
306
%%EOF"""
    return pdf_content


@pytest.fixture
def sample_document(sample_pdf_bytes: bytes) -> UploadedDocument:
    return UploadedDocument(
        content=sample_pdf_bytes,
        media_type=PDF,
        size_bytes=len(sample_pdf_bytes),
        original_name="application.pdf",
    )
