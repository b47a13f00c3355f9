"""
Router for the OCR endpoint.

Handles:
- Credit application upload and field extraction
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, Header, UploadFile
from fastapi.responses import JSONResponse

from ..services.pipeline import ExtractionPipeline, get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ocr"])


@router.post("/ocr")
async def extract_credit_application(
    pipeline: Annotated[ExtractionPipeline, Depends(get_pipeline)],
    file: Annotated[
        UploadFile | None,
        File(description="Credit application (PDF or Word)"),
    ] = None,
    x_request_id: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """
    Extract business fields from one uploaded credit application.

    Returns the extracted fields on success. Otherwise returns a
    diagnostic object with `error` and `kind`; when the model answered
    with something unusable the status is still 200 and `raw` holds its
    output.
    """
    request_id = x_request_id or uuid.uuid4().hex

    content: bytes | None = None
    media_type: str | None = None
    declared_size: int | None = None
    filename: str | None = None

    if file is not None:
        try:
            content = await file.read()
            media_type = file.content_type
            declared_size = file.size
            filename = file.filename
        finally:
            await file.close()

    response = await pipeline.run(
        content,
        media_type,
        declared_size=declared_size,
        filename=filename,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=response.status_code,
        content=response.body,
        headers={"X-Request-ID": request_id},
    )
