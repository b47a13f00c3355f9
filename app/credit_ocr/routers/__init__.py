"""
Routers package for FastAPI endpoints.

- ocr: Credit application upload and extraction
"""

from . import ocr

__all__ = ["ocr"]
