"""
Upstream model package.

- prompts: Instruction and attachment construction
- adapters: Inline, by-reference and mock model adapters
- staging: Scoped temporary files for by-reference uploads
- interpreter: Strict parsing of the model's raw output
"""

from .adapters import (
    InlineModelAdapter,
    MockModelAdapter,
    ModelAdapter,
    ReferenceModelAdapter,
    classify_openai_error,
    create_model_adapter,
)
from .interpreter import interpret
from .prompts import build_instructions, build_request

__all__ = [
    "ModelAdapter",
    "InlineModelAdapter",
    "ReferenceModelAdapter",
    "MockModelAdapter",
    "classify_openai_error",
    "create_model_adapter",
    "interpret",
    "build_instructions",
    "build_request",
]
