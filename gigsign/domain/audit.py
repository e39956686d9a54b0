"""SQLAlchemy ORM model for the per-contract audit trail."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gigsign.db.base import Base


class AuditEvent(str, enum.Enum):
    CREATED = "created"
    SENT_TO_REVIEWER = "sent_to_reviewer"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    SENT = "sent"
    RESENT = "resent"
    VIEWED = "viewed"
    SIGNED = "signed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ContractAuditEntry(Base):
    __tablename__ = "contract_audit"
    __table_args__ = (
        UniqueConstraint("contract_id", "sequence", name="uq_contract_audit_sequence"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    contract_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    # What
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    document_hash_sha256: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # Who
    actor_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    # Chain
    previous_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    entry_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # When (no updated_at; audit rows are immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    contract: Mapped["Contract"] = relationship(back_populates="audit_entries")
