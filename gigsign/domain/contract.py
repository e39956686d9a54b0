"""SQLAlchemy ORM model for subscription contracts and their lifecycle fields."""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gigsign.db.base import Base
from gigsign.domain.mixins import TenantMixin, TimestampMixin


class ContractStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT_TO_REVIEWER = "sent_to_reviewer"
    REVIEWED = "reviewed"
    SENT = "sent"
    VIEWED = "viewed"
    SIGNED = "signed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class BillingInterval(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class Contract(Base, TenantMixin, TimestampMixin):
    """One signable agreement instance."""

    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    contract_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    # Commercial terms (editable only while draft)
    tier: Mapped[str] = mapped_column(String(100), nullable=False)
    annual_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="SEK", nullable=False)
    billing_interval: Mapped[str] = mapped_column(
        String(20), default=BillingInterval.ANNUAL.value, nullable=False
    )
    vat_rate_pct: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("25"), nullable=False)
    contract_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    contract_duration_months: Mapped[int] = mapped_column(Integer, default=12, nullable=False)
    custom_terms: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Parties
    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    signer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    signer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    signer_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reviewer_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(30), default=ContractStatus.DRAFT.value, nullable=False, index=True
    )
    # Token columns hold the SHA-256 of the bearer token, never the token itself.
    # NULL means no live token of that kind.
    reviewer_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    reviewer_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    signing_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    signature_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Document digests (terms at creation / last draft edit, and after signing)
    document_hash_sha256: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    signed_document_hash_sha256: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    audit_entries: Mapped[List["ContractAuditEntry"]] = relationship(
        back_populates="contract",
        lazy="raise",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
