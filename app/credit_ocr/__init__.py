"""
Credit Application OCR Service.

A FastAPI service that extracts business fields from an uploaded
credit application (PDF or Word) using an OpenAI vision model.
"""

__version__ = "1.0.0"
