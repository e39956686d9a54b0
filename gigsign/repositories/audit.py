"""Audit entry repository — append and read only."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.domain.audit import ContractAuditEntry


class AuditRepository:
    """Entries are scoped by their contract, so there is no tenant filter here."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def last_for_contract(self, contract_id: str) -> ContractAuditEntry | None:
        result = await self._session.execute(
            select(ContractAuditEntry)
            .where(ContractAuditEntry.contract_id == contract_id)
            .order_by(ContractAuditEntry.sequence.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_for_contract(self, contract_id: str) -> list[ContractAuditEntry]:
        result = await self._session.execute(
            select(ContractAuditEntry)
            .where(ContractAuditEntry.contract_id == contract_id)
            .order_by(ContractAuditEntry.sequence.asc())
        )
        return list(result.scalars().all())

    async def add(self, entry: ContractAuditEntry) -> ContractAuditEntry:
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def delete_for_contract(self, contract_id: str) -> int:
        """Only used by the admin delete-contract operation."""
        result = await self._session.execute(
            delete(ContractAuditEntry).where(ContractAuditEntry.contract_id == contract_id)
        )
        return result.rowcount
