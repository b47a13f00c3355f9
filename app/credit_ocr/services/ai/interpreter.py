"""
Interpretation of raw model output.

Turns the model's text into an ExtractionResult. The model is treated as
an untrusted producer: output is parsed strictly, checked against the
schema without coercion, and only then backfilled to the full shape.
Every failure is returned as an ExtractionFailure; nothing is raised.
"""

import json
import logging
from typing import Any

from ...models import (
    ExtractionFailure,
    ExtractionResult,
    ExtractionSchema,
    ExtractionSuccess,
    FieldDefinition,
    FieldKind,
    FailureKind,
)

logger = logging.getLogger(__name__)

NON_JSON_MESSAGE = "OCR returned non-JSON output"
SCHEMA_MISMATCH_MESSAGE = "OCR output did not match the extraction schema"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _parse_int(token: str) -> int | float:
    # Integers past the interpreter's digit limit are still JSON numbers.
    try:
        return int(token)
    except ValueError:
        return float(token)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _check_records(field: FieldDefinition, value: Any) -> list[str]:
    if not isinstance(value, list):
        return [f"'{field.name}' must be an array, got {_json_type(value)}"]

    problems = []
    for index, record in enumerate(value):
        if not isinstance(record, dict):
            problems.append(
                f"'{field.name}[{index}]' must be an object, got {_json_type(record)}"
            )
            continue
        for sub in field.record_fields:
            if sub in record and not isinstance(record[sub], str):
                problems.append(
                    f"'{field.name}[{index}].{sub}' must be a string, got {_json_type(record[sub])}"
                )
    return problems


def find_schema_problems(data: Any, schema: ExtractionSchema) -> list[str]:
    """
    List every way a parsed value departs from the schema.

    Returns:
        Human-readable problems; empty when the value conforms.
    """
    if not isinstance(data, dict):
        return [f"Expected a JSON object, got {_json_type(data)}"]

    problems = []
    for field in schema.fields:
        if field.name not in data:
            if field.required:
                problems.append(f"Missing required field '{field.name}'")
            continue

        value = data[field.name]
        if field.kind == FieldKind.RECORDS:
            problems.extend(_check_records(field, value))
        elif not isinstance(value, str):
            problems.append(f"'{field.name}' must be a string, got {_json_type(value)}")
    return problems


def _backfill(data: dict[str, Any], schema: ExtractionSchema) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for field in schema.fields:
        if field.name not in data:
            fields[field.name] = field.empty_value()
        elif field.kind == FieldKind.RECORDS:
            fields[field.name] = [
                {sub: record.get(sub, "") for sub in field.record_fields}
                for record in data[field.name]
            ]
        else:
            fields[field.name] = data[field.name]

    extra = sorted(set(data) - set(schema.field_names))
    if extra:
        logger.debug("Dropping keys not in schema '%s': %s", schema.name, extra)
    return fields


def interpret(raw_output: str | None, schema: ExtractionSchema) -> ExtractionResult:
    """
    Parse and validate raw model output against a schema.

    Only surrounding whitespace is stripped. Fenced or prose-wrapped JSON
    counts as non-JSON output.

    Args:
        raw_output: Text returned by the model.
        schema: The schema the result must match.

    Returns:
        ExtractionSuccess with every schema field present, or an
        ExtractionFailure carrying the original text.
    """
    raw = raw_output if isinstance(raw_output, str) else ""

    try:
        data = json.loads(
            raw.strip(), parse_constant=_reject_constant, parse_int=_parse_int
        )
    except (ValueError, RecursionError) as e:
        return ExtractionFailure(
            kind=FailureKind.NON_JSON_OUTPUT,
            message=NON_JSON_MESSAGE,
            raw=raw,
            details=[str(e)[:200]],
        )

    problems = find_schema_problems(data, schema)
    if problems:
        return ExtractionFailure(
            kind=FailureKind.SCHEMA_MISMATCH,
            message=SCHEMA_MISMATCH_MESSAGE,
            raw=raw,
            details=problems,
        )

    return ExtractionSuccess(fields=_backfill(data, schema))
