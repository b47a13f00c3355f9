"""
Result assembly: maps pipeline outcomes onto caller-visible responses.
"""

from dataclasses import dataclass
from typing import Any

from ..models import DiagnosticResponse, ErrorKind, ExtractionFailure, ExtractionSuccess
from .exceptions import AdmissionError, OCRServiceError

TRUNCATION_MARKER = "...[truncated {omitted} chars]"


@dataclass(frozen=True)
class AssembledResponse:
    """HTTP status code plus JSON body."""

    status_code: int
    body: dict[str, Any]


def bound_raw(raw: str, limit: int) -> tuple[str, bool]:
    """
    Cut raw model output to at most `limit` characters plus a marker.

    Returns:
        The bounded text and whether anything was cut.
    """
    if len(raw) <= limit:
        return raw, False
    omitted = len(raw) - limit
    return raw[:limit] + TRUNCATION_MARKER.format(omitted=omitted), True


def _body(diagnostic: DiagnosticResponse) -> dict[str, Any]:
    return diagnostic.model_dump(mode="json", exclude_none=True)


def assemble_success(result: ExtractionSuccess) -> AssembledResponse:
    """Successful extraction: the fields object is the whole body."""
    return AssembledResponse(status_code=200, body=dict(result.fields))


def assemble_failure(
    result: ExtractionFailure,
    raw_limit: int,
    request_id: str | None = None,
) -> AssembledResponse:
    """
    Upstream answered but the answer was unusable.

    Returned as a 200 so callers can tell it apart from a service outage.
    """
    raw, truncated = bound_raw(result.raw or "", raw_limit)
    diagnostic = DiagnosticResponse(
        error=result.message,
        kind=ErrorKind(result.kind.value),
        details=list(result.details) or None,
        raw=raw,
        raw_truncated=truncated,
        request_id=request_id,
    )
    return AssembledResponse(status_code=200, body=_body(diagnostic))


def assemble_error(error: OCRServiceError, request_id: str | None = None) -> AssembledResponse:
    """Admission and invocation errors, each with its own kind and status."""
    message = str(error)
    if isinstance(error, AdmissionError):
        # Admission messages are already caller-facing
        public, details = message, None
    else:
        public = error.public_message
        details = message if message != public else None
    diagnostic = DiagnosticResponse(
        error=public,
        kind=error.kind,
        details=details,
        retryable=error.retryable,
        request_id=request_id,
    )
    return AssembledResponse(status_code=error.status_code, body=_body(diagnostic))


def assemble_internal_failure(
    exc: BaseException,
    request_id: str | None = None,
    expose_details: bool = False,
) -> AssembledResponse:
    """Unexpected exception: generic message, details only in debug mode."""
    diagnostic = DiagnosticResponse(
        error="OCR processing failed",
        kind=ErrorKind.INTERNAL_FAILURE,
        details=f"{exc.__class__.__name__}: {exc}" if expose_details else None,
        request_id=request_id,
    )
    return AssembledResponse(status_code=500, body=_body(diagnostic))
