"""
Document admission: type and size checks before anything leaves the process.
"""

import logging
from dataclasses import dataclass, field

from ..config import DOC_MEDIA_TYPE, DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE, Settings
from ..models import UploadedDocument
from .exceptions import MissingFile, PayloadTooLarge, UnsupportedMediaType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionPolicy:
    """Deployment-wide admission rules, read-only after startup."""

    allowed_media_types: frozenset[str] = field(
        default_factory=lambda: frozenset(
            {PDF_MEDIA_TYPE, DOC_MEDIA_TYPE, DOCX_MEDIA_TYPE}
        )
    )
    max_size_bytes: int = 5 * 1024 * 1024
    pdf_only: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdmissionPolicy":
        return cls(
            allowed_media_types=frozenset(settings.allowed_media_types),
            max_size_bytes=settings.max_upload_bytes,
            pdf_only=settings.pdf_only,
        )

    @property
    def effective_media_types(self) -> frozenset[str]:
        if self.pdf_only:
            return self.allowed_media_types & {PDF_MEDIA_TYPE}
        return self.allowed_media_types


def normalize_media_type(media_type: str | None) -> str:
    """Drop parameters such as '; charset=binary' and lower-case."""
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def _format_limit(size_bytes: int) -> str:
    mib = size_bytes / (1024 * 1024)
    if mib >= 1:
        return f"{mib:g}MB"
    return f"{size_bytes // 1024}KB"


def admit(
    content: bytes | None,
    declared_media_type: str | None,
    declared_size: int | None = None,
    *,
    original_name: str | None = None,
    policy: AdmissionPolicy,
) -> UploadedDocument:
    """
    Validate an inbound document against the admission policy.

    Rules are applied in order: presence, media type, size.

    Args:
        content: Raw document bytes.
        declared_media_type: Content type declared by the uploader.
        declared_size: Size declared by the uploader (advisory).
        original_name: Uploaded filename (advisory).
        policy: Allowed media types and size limit.

    Returns:
        The admitted UploadedDocument.

    Raises:
        MissingFile: No bytes were supplied.
        UnsupportedMediaType: Media type outside the allow-list.
        PayloadTooLarge: Content exceeds the configured maximum.
    """
    if not content:
        raise MissingFile()

    media_type = normalize_media_type(declared_media_type)
    if media_type not in policy.effective_media_types:
        message = (
            "Only PDF documents are allowed"
            if policy.pdf_only
            else UnsupportedMediaType.public_message
        )
        logger.info("Rejected media type %r for %s", declared_media_type, original_name)
        raise UnsupportedMediaType(message)

    size_bytes = len(content)
    if declared_size is not None and declared_size != size_bytes:
        logger.warning(
            "Declared size %d differs from received size %d for %s; using received size",
            declared_size,
            size_bytes,
            original_name,
        )

    if size_bytes > policy.max_size_bytes:
        raise PayloadTooLarge(
            f"File too large (max {_format_limit(policy.max_size_bytes)})"
        )

    return UploadedDocument(
        content=content,
        media_type=media_type,
        size_bytes=size_bytes,
        original_name=original_name,
    )
