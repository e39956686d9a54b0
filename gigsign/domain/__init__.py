"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  contract.py  — Contracts, their terms, parties and lifecycle/token columns
  audit.py     — Hash-chained contract audit trail (never updated)
  mixins.py    — Shared TimestampMixin, TenantMixin
"""

from gigsign.domain.audit import AuditEvent, ContractAuditEntry
from gigsign.domain.contract import BillingInterval, Contract, ContractStatus

__all__ = [
    "AuditEvent",
    "BillingInterval",
    "Contract",
    "ContractAuditEntry",
    "ContractStatus",
]
