"""
Canonical extraction schemas.

Two revisions ship: a single-field schema used while verifying autofill,
and the full business credit application. A deployment picks one through
the EXTRACTION_SCHEMA setting.
"""

from ..models import ExtractionSchema, FieldDefinition, FieldKind

LEGAL_BUSINESS_NAME_SCHEMA = ExtractionSchema(
    name="legal_business_name",
    version="1",
    description="Legal business name only",
    fields=[
        FieldDefinition(
            name="legal_business_name",
            description="Registered legal name of the applying business",
            required=True,
        ),
    ],
)


def _text(name: str, description: str, required: bool = False) -> FieldDefinition:
    return FieldDefinition(name=name, description=description, required=required)


CREDIT_APPLICATION_SCHEMA = ExtractionSchema(
    name="credit_application",
    version="2",
    description="Business credit application",
    fields=[
        # Business identity
        _text("legal_business_name", "Registered legal name of the business", required=True),
        _text("dba_name", "Trade name / doing-business-as name"),
        _text("business_type", "Corporation, LLC, partnership, sole proprietorship, etc."),
        _text("federal_tax_id", "Federal tax ID / EIN"),
        _text("date_established", "Date the business was established"),
        _text("years_in_business", "Number of years in business"),
        _text("state_of_incorporation", "State of incorporation or registration"),
        _text("industry", "Nature of business / industry"),
        _text("annual_sales", "Annual sales or revenue"),
        _text("number_of_employees", "Number of employees"),
        # Contact
        _text("business_address", "Street address of the business"),
        _text("city", "City of the business address"),
        _text("state", "State of the business address"),
        _text("zip_code", "ZIP / postal code of the business address"),
        _text("billing_address", "Billing address when different from the business address"),
        _text("phone", "Main business phone number"),
        _text("fax", "Fax number"),
        _text("email", "Main business email address"),
        _text("website", "Business website"),
        # Accounts payable
        _text("ap_contact_name", "Accounts payable contact name"),
        _text("ap_contact_phone", "Accounts payable contact phone"),
        _text("ap_contact_email", "Accounts payable contact email"),
        # Credit request
        _text("credit_limit_requested", "Requested credit limit"),
        _text("tax_exempt", "Whether the business is tax exempt (yes/no)"),
        # Bank reference
        _text("bank_name", "Name of the business's bank"),
        _text("bank_account_number", "Bank account number"),
        _text("bank_contact_name", "Contact person at the bank"),
        _text("bank_phone", "Bank phone number"),
        # Repeated groups
        FieldDefinition(
            name="principals",
            kind=FieldKind.RECORDS,
            description="Owners, officers or guarantors listed on the application",
            record_fields=("name", "title", "address", "phone", "email"),
        ),
        FieldDefinition(
            name="trade_references",
            kind=FieldKind.RECORDS,
            description="Supplier / trade references",
            record_fields=("company_name", "contact_name", "phone", "email", "address"),
        ),
        # Signature
        _text("signer_name", "Name of the person signing the application"),
        _text("signer_title", "Title of the person signing the application"),
        _text("signature_date", "Date the application was signed"),
    ],
)

SCHEMAS: dict[str, ExtractionSchema] = {
    LEGAL_BUSINESS_NAME_SCHEMA.name: LEGAL_BUSINESS_NAME_SCHEMA,
    CREDIT_APPLICATION_SCHEMA.name: CREDIT_APPLICATION_SCHEMA,
}


def get_schema(name: str) -> ExtractionSchema:
    """Look up a shipped schema by name."""
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError(
            f"Unknown extraction schema '{name}'. Available: {sorted(SCHEMAS)}"
        ) from None
