"""
Services package for the credit application OCR service.

Contains:
- admission: Type and size checks for uploaded documents
- extraction_schema: The shipped extraction schemas
- ai: Request building, model adapters and output interpretation
- assembler: Mapping of results and errors onto responses
- pipeline: The end-to-end extraction pipeline
"""

from .pipeline import ExtractionPipeline, get_pipeline

__all__ = ["ExtractionPipeline", "get_pipeline"]
