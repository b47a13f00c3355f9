"""
Request construction for the upstream extraction model.

The instructions embed the schema as an empty JSON template so the model
answers in exactly the shape the interpreter expects.
"""

import base64
import json

from ...models import (
    Attachment,
    ExtractionRequest,
    ExtractionSchema,
    FieldKind,
    InlineAttachment,
    UploadedDocument,
)


# =============================================================================
# Extraction Prompt
# =============================================================================

EXTRACTION_TASK = """You are a precise data entry clerk reading a business credit application.
Extract the business information from the attached document and fill in the JSON template below."""

FORMATTING_RULES = """## Rules:

1. Return ONLY the JSON object. No markdown, no code fences, no text, no explanation.
2. Use EXACTLY the keys shown in the template. Do not add, rename or remove keys.
3. If a value cannot be found or read, use an empty string "". Never use null and never omit a key.
4. Every value is a string, except list fields, which are lists of objects with the keys shown.
5. For list fields, include one object per entry found in the document, or an empty list if there are none.
6. Copy values as written. Do not guess or infer values that are not on the document.
7. Phone numbers: when the number is clearly a 10-digit US number, format it as (XXX) XXX-XXXX. Otherwise copy it as written."""


def _describe_fields(schema: ExtractionSchema) -> str:
    lines = []
    for field in schema.fields:
        marker = " (REQUIRED)" if field.required else ""
        if field.kind == FieldKind.RECORDS:
            subs = ", ".join(field.record_fields)
            lines.append(f"- **{field.name}**{marker}: {field.description} (list of {{{subs}}})")
        else:
            lines.append(f"- **{field.name}**{marker}: {field.description}")
    return "\n".join(lines)


def build_instructions(schema: ExtractionSchema) -> str:
    """
    Build the instruction block for one extraction request.

    Args:
        schema: The schema to build the prompt for.

    Returns:
        The task description, JSON template, field notes and formatting rules.
    """
    template = json.dumps(schema.template(include_example_records=True), indent=2)
    return f"""{EXTRACTION_TASK}

Return EXACTLY this JSON:

{template}

## Fields:
{_describe_fields(schema)}

{FORMATTING_RULES}"""


def build_inline_attachment(document: UploadedDocument) -> InlineAttachment:
    """Embed the whole document as a content-type-prefixed base64 data URL."""
    encoded = base64.b64encode(document.content).decode("ascii")
    return InlineAttachment(
        media_type=document.media_type,
        filename=document.display_name,
        data_url=f"data:{document.media_type};base64,{encoded}",
    )


def build_request(schema: ExtractionSchema, attachment: Attachment) -> ExtractionRequest:
    """Combine the schema instructions with the attachment for one document."""
    return ExtractionRequest(
        instructions=build_instructions(schema),
        attachment=attachment,
    )
