"""Contract Pydantic schemas (request DTOs, admin views, and the public projection)."""


from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import Field, ValidationInfo, field_validator

from gigsign.schemas.common import ApiModel

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

BillingIntervalLiteral = Literal["monthly", "quarterly", "annual"]

# ---------------------------------------------------------------------------
# Admin requests
# ---------------------------------------------------------------------------

class ContractCreate(ApiModel):
    company_name: str | None = None
    tier: str = Field(min_length=1, max_length=100)
    annual_price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    currency: str = Field(default="SEK", min_length=3, max_length=3)
    billing_interval: BillingIntervalLiteral = "annual"
    vat_rate_pct: Decimal = Field(default=Decimal("25"), ge=0, le=100)
    contract_start_date: date
    contract_duration_months: int = Field(default=12, gt=0)
    custom_terms: dict[str, Any] = Field(default_factory=dict)
    signer_name: str = Field(min_length=1)
    signer_email: str = Field(pattern=_EMAIL_PATTERN)
    signer_title: str | None = None
    reviewer_name: str | None = None
    reviewer_email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    reviewer_title: str | None = None

class ContractUpdate(ApiModel):
    company_name: str | None = None
    tier: str | None = Field(default=None, min_length=1, max_length=100)
    annual_price: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    billing_interval: BillingIntervalLiteral | None = None
    vat_rate_pct: Decimal | None = Field(default=None, ge=0, le=100)
    contract_start_date: date | None = None
    contract_duration_months: int | None = Field(default=None, gt=0)
    custom_terms: dict[str, Any] | None = None
    signer_name: str | None = Field(default=None, min_length=1)
    signer_email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    signer_title: str | None = None
    reviewer_name: str | None = None
    reviewer_email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    reviewer_title: str | None = None

    # Omitted means "leave as is"; an explicit null would clear a NOT NULL column.
    @field_validator(
        "tier", "annual_price", "currency", "billing_interval", "vat_rate_pct",
        "contract_start_date", "contract_duration_months", "signer_name", "signer_email",
    )
    @classmethod
    def _not_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

class SendContractRequest(ApiModel):
    """``recipient=reviewer`` routes through review first; reviewer details may be set here."""

    recipient: Literal["signer", "reviewer"] = "signer"
    reviewer_name: str | None = None
    reviewer_email: str | None = Field(default=None, pattern=_EMAIL_PATTERN)
    reviewer_title: str | None = None

# ---------------------------------------------------------------------------
# Public requests
# ---------------------------------------------------------------------------

class SignContractRequest(ApiModel):
    # Shape only; required-ness and the signature size are enforced after
    # the token is resolved so an unknown link answers 404 before 400.
    signer_name: str | None = None
    signer_title: str | None = None
    signature_image: str | None = None

# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class AuditEntryOut(ApiModel):
    id: str
    sequence: int
    event_type: str
    actor_email: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    document_hash_sha256: str | None = None
    details: dict[str, Any] | None = None
    previous_hash: str | None = None
    entry_hash: str
    created_at: datetime

class ContractOut(ApiModel):
    id: str
    client_id: str
    contract_number: str
    company_name: str | None = None
    tier: str
    annual_price: Decimal
    currency: str
    billing_interval: str
    vat_rate_pct: Decimal
    contract_start_date: date
    contract_duration_months: int
    custom_terms: dict[str, Any] | None = None
    signer_name: str
    signer_email: str
    signer_title: str | None = None
    reviewer_name: str | None = None
    reviewer_email: str | None = None
    reviewer_title: str | None = None
    status: str
    reviewer_token_expires_at: datetime | None = None
    token_expires_at: datetime | None = None
    sent_at: datetime | None = None
    reviewed_at: datetime | None = None
    viewed_at: datetime | None = None
    signed_at: datetime | None = None
    document_hash_sha256: str | None = None
    signed_document_hash_sha256: str | None = None
    created_at: datetime
    updated_at: datetime

class ContractDetailOut(ContractOut):
    audit_trail: list[AuditEntryOut] = Field(default_factory=list)
    audit_chain_valid: bool = True

class ContractProjection(ApiModel):
    """What an external reviewer or signer may see. No ids, tokens, or signature data."""

    contract_number: str
    company_name: str | None = None
    tier: str
    annual_price: Decimal
    currency: str
    billing_interval: str
    vat_rate_pct: Decimal
    contract_start_date: date
    contract_duration_months: int
    custom_terms: dict[str, Any] | None = None
    signer_name: str
    signer_email: str
    signer_title: str | None = None
    reviewer_name: str | None = None
    reviewer_email: str | None = None
    reviewer_title: str | None = None
    status: str
    expires_at: datetime | None = None
    document_hash: str | None = None

class SendContractResponse(ApiModel):
    success: bool = True
    sent_to: str
    status: str

class ApprovalResponse(ApiModel):
    success: bool = True
    forwarded_to: str

class SignatureResponse(ApiModel):
    success: bool = True
    signed_at: datetime
