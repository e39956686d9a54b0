"""Contract audit trail — append-only, hash-chained per contract.

Every applied lifecycle transition records exactly one entry. Each entry's
``entry_hash`` covers its own fields plus the previous entry's hash, so a
rewritten or removed entry breaks :func:`verify_chain` for every entry after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.core.hashing import hash_chain
from gigsign.domain.audit import AuditEvent, ContractAuditEntry
from gigsign.domain.contract import Contract
from gigsign.domain.mixins import as_utc, utcnow
from gigsign.repositories.audit import AuditRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Who performed an action, and from where."""

    actor_email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def as_actor(self, email: Optional[str]) -> "AuditContext":
        return AuditContext(email, self.ip_address, self.user_agent)


def _hash_payload(entry: ContractAuditEntry) -> dict[str, Any]:
    return {
        "contract_id": entry.contract_id,
        "sequence": entry.sequence,
        "event_type": entry.event_type,
        "actor_email": entry.actor_email,
        "ip_address": entry.ip_address,
        "user_agent": entry.user_agent,
        "document_hash_sha256": entry.document_hash_sha256,
        "details": entry.details or {},
        "created_at": _iso(entry.created_at),
    }


def _iso(value: datetime) -> str:
    return as_utc(value).isoformat()


def compute_entry_hash(entry: ContractAuditEntry) -> str:
    return hash_chain(entry.previous_hash, _hash_payload(entry))


def verify_chain(entries: list[ContractAuditEntry]) -> bool:
    """True when ``entries`` (sequence order) form an unbroken chain from 1."""
    previous: Optional[str] = None
    for expected_seq, entry in enumerate(entries, start=1):
        if entry.sequence != expected_seq or entry.previous_hash != previous:
            return False
        if compute_entry_hash(entry) != entry.entry_hash:
            return False
        previous = entry.entry_hash
    return True


class AuditTrail:
    def __init__(self, session: AsyncSession):
        self._repo = AuditRepository(session)

    async def record(
        self,
        contract: Contract,
        event: AuditEvent,
        ctx: AuditContext,
        *,
        details: Optional[dict[str, Any]] = None,
        document_hash: Optional[str] = None,
    ) -> ContractAuditEntry:
        last = await self._repo.last_for_contract(contract.id)
        entry = ContractAuditEntry(
            contract_id=contract.id,
            sequence=(last.sequence + 1) if last else 1,
            event_type=event.value,
            actor_email=ctx.actor_email,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
            document_hash_sha256=document_hash or contract.document_hash_sha256,
            details=details or {},
            previous_hash=last.entry_hash if last else None,
            created_at=utcnow(),
        )
        entry.entry_hash = compute_entry_hash(entry)
        await self._repo.add(entry)
        logger.info(
            "Audit: contract %s #%d %s (actor=%s)",
            contract.contract_number, entry.sequence, entry.event_type, entry.actor_email or "-",
        )
        return entry

    async def entries(self, contract_id: str) -> list[ContractAuditEntry]:
        return await self._repo.list_for_contract(contract_id)
