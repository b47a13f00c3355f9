"""
Pydantic models for the credit application OCR pipeline.

Defines strict types for the extraction schema, the admitted document,
the request sent upstream, interpreter results and the diagnostic
payloads returned to callers.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Extraction Schema Models
# =============================================================================


class FieldKind(str, Enum):
    """Shape of a top-level extraction field."""

    STRING = "string"
    RECORDS = "records"  # Repeated structured record (trade references, owners)


class FieldDefinition(BaseModel):
    """
    Definition of a single field to extract from a credit application.

    Attributes:
        name: Unique identifier for the field (snake_case).
        kind: Scalar string or repeated record.
        description: Human-readable hint included in the instructions.
        required: Whether the model must return this key.
        record_fields: Sub-field names of each record (records only).
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique field identifier",
        examples=["legal_business_name", "trade_references"],
    )
    kind: FieldKind = Field(default=FieldKind.STRING)
    description: str = Field(default="", max_length=500)
    required: bool = Field(default=False)
    record_fields: tuple[str, ...] = Field(default=())

    @field_validator("name")
    @classmethod
    def validate_name_format(cls, v: str) -> str:
        """Ensure field name is a valid identifier."""
        if not v.replace("_", "").replace("-", "").isalnum():
            raise ValueError(
                "Field name must contain only alphanumeric characters, underscores, or hyphens"
            )
        return v.lower().replace("-", "_")

    @model_validator(mode="after")
    def validate_record_fields(self) -> "FieldDefinition":
        if self.kind == FieldKind.RECORDS and not self.record_fields:
            raise ValueError(f"Records field '{self.name}' needs at least one sub-field")
        if self.kind == FieldKind.STRING and self.record_fields:
            raise ValueError(f"String field '{self.name}' cannot declare sub-fields")
        if len(set(self.record_fields)) != len(self.record_fields):
            raise ValueError(f"Sub-field names of '{self.name}' must be unique")
        return self

    def empty_value(self) -> str | list:
        """Default used when the model had no evidence for this field."""
        return [] if self.kind == FieldKind.RECORDS else ""

    def empty_record(self) -> dict[str, str]:
        return {sub: "" for sub in self.record_fields}


class ExtractionSchema(BaseModel):
    """
    Ordered set of fields the pipeline promises to return.

    One schema is fixed per deployment; the version travels with it so
    logs show which revision produced a result.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=100)
    version: str = Field(default="1")
    description: str = Field(default="", max_length=1000)
    fields: tuple[FieldDefinition, ...] = Field(..., min_length=1)

    @field_validator("fields")
    @classmethod
    def validate_unique_field_names(
        cls, v: tuple[FieldDefinition, ...]
    ) -> tuple[FieldDefinition, ...]:
        """Ensure all field names are unique."""
        names = [f.name for f in v]
        if len(names) != len(set(names)):
            raise ValueError("All field names must be unique within a schema")
        return v

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def required_fields(self) -> list[FieldDefinition]:
        return [f for f in self.fields if f.required]

    def get_field(self, name: str) -> FieldDefinition | None:
        return next((f for f in self.fields if f.name == name), None)

    def template(self, include_example_records: bool = False) -> dict[str, Any]:
        """
        Build the empty JSON shape for this schema.

        Args:
            include_example_records: Put one empty record into every records
                field so the model can see the record shape.

        Returns:
            Field name to empty value, in schema order.
        """
        result: dict[str, Any] = {}
        for field in self.fields:
            if field.kind == FieldKind.RECORDS and include_example_records:
                result[field.name] = [field.empty_record()]
            else:
                result[field.name] = field.empty_value()
        return result


# =============================================================================
# Pipeline Models
# =============================================================================


class UploadedDocument(BaseModel):
    """A document that passed admission. Lives only for one request."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(..., repr=False)
    media_type: str
    size_bytes: int = Field(..., ge=0)
    original_name: str | None = None

    @model_validator(mode="after")
    def validate_size(self) -> "UploadedDocument":
        if self.size_bytes != len(self.content):
            raise ValueError(
                f"size_bytes ({self.size_bytes}) does not match content length ({len(self.content)})"
            )
        return self

    @property
    def display_name(self) -> str:
        return self.original_name or "document"


class InlineAttachment(BaseModel):
    """Document content embedded in the request as a base64 data URL."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["inline"] = "inline"
    media_type: str
    filename: str
    data_url: str = Field(..., repr=False)


class ReferenceAttachment(BaseModel):
    """Document previously registered upstream, cited by its file id."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["reference"] = "reference"
    file_id: str = Field(..., min_length=1)
    filename: str


Attachment = Annotated[
    Union[InlineAttachment, ReferenceAttachment], Field(discriminator="mode")
]


class ExtractionRequest(BaseModel):
    """Instructions plus exactly one attached document."""

    model_config = ConfigDict(frozen=True)

    instructions: str = Field(..., min_length=1)
    attachment: Attachment


class FailureKind(str, Enum):
    """Ways an upstream answer can be unusable."""

    NON_JSON_OUTPUT = "non_json_output"
    SCHEMA_MISMATCH = "schema_mismatch"


class ExtractionSuccess(BaseModel):
    """Model output that matched the schema, backfilled to full shape."""

    model_config = ConfigDict(frozen=True)

    fields: dict[str, Any]


class ExtractionFailure(BaseModel):
    """Upstream answered, but its content could not be used."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    raw: str | None = None
    details: list[str] = Field(default_factory=list)


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]


# =============================================================================
# Response Models
# =============================================================================


class ErrorKind(str, Enum):
    """Diagnostic kinds visible to callers."""

    MISSING_FILE = "missing_file"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    REGISTRATION_ERROR = "registration_error"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_REJECTED = "upstream_rejected"
    NON_JSON_OUTPUT = "non_json_output"
    SCHEMA_MISMATCH = "schema_mismatch"
    INTERNAL_FAILURE = "internal_failure"


class DiagnosticResponse(BaseModel):
    """Error payload returned instead of extracted fields."""

    error: str = Field(..., description="Human-readable error message")
    kind: ErrorKind = Field(..., description="Machine-readable error kind")
    details: str | list[str] | None = Field(
        default=None,
        description="Additional detail about the failure",
    )
    raw: str | None = Field(
        default=None,
        description="Upstream output that could not be used (bounded)",
    )
    raw_truncated: bool | None = Field(
        default=None,
        description="Whether raw was cut to the configured limit",
    )
    retryable: bool = Field(
        default=False,
        description="Whether repeating the same request may succeed",
    )
    request_id: str | None = Field(default=None, description="Request identifier")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="")
    version: str = Field(default="1.0.0")
