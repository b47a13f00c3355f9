"""
Shared exceptions for the OCR pipeline.

Each error carries the diagnostic kind, HTTP status and retry hint the
result assembler needs to describe it to the caller.
"""

from ..models import ErrorKind


class OCRServiceError(Exception):
    """Base class for pipeline errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_FAILURE
    status_code: int = 500
    retryable: bool = False
    public_message: str = "OCR processing failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)


# =============================================================================
# Admission
# =============================================================================


class AdmissionError(OCRServiceError):
    """Raised when a document is refused before any upstream call."""

    status_code = 400


class MissingFile(AdmissionError):
    kind = ErrorKind.MISSING_FILE
    status_code = 400
    public_message = "No file uploaded"


class UnsupportedMediaType(AdmissionError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE
    status_code = 415
    public_message = "Only PDF or Word documents are allowed"


class PayloadTooLarge(AdmissionError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE
    status_code = 413
    public_message = "File too large"


# =============================================================================
# Upstream invocation
# =============================================================================


class InvocationError(OCRServiceError):
    """Raised when the upstream model service could not be used."""

    status_code = 502


class UpstreamUnavailable(InvocationError):
    """Transient network or service failure (retryable)."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    status_code = 503
    retryable = True
    public_message = "OCR service unavailable"


class RegistrationError(UpstreamUnavailable):
    """Uploading the document for by-reference use failed transiently."""

    kind = ErrorKind.REGISTRATION_ERROR
    public_message = "Document registration failed"


class UpstreamRejected(InvocationError):
    """Upstream refused the request; retrying unchanged will not help."""

    kind = ErrorKind.UPSTREAM_REJECTED
    status_code = 502
    public_message = "OCR service rejected the request"
