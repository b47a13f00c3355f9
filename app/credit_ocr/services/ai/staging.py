"""
Temporary on-disk staging for documents uploaded by reference.
"""

import logging
import re
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ...models import UploadedDocument

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: str | None, default: str = "document") -> str:
    """Reduce an uploaded filename to a safe basename."""
    base = Path(name or "").name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:100] or default


@contextmanager
def staged_document(document: UploadedDocument) -> Iterator[Path]:
    """
    Write the document to a uniquely named temporary file.

    The file lives in its own temporary directory, which is removed when
    the context exits, whether normally or through an exception.

    Yields:
        Path to the staged file.
    """
    with tempfile.TemporaryDirectory(prefix="credit-ocr-") as tmp_dir:
        path = Path(tmp_dir) / f"{uuid.uuid4().hex}-{safe_filename(document.original_name)}"
        path.write_bytes(document.content)
        logger.debug("Staged %d bytes at %s", document.size_bytes, path)
        yield path
    logger.debug("Removed staged file %s", path)
