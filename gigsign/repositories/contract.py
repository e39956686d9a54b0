"""Contract repository — token lookups and conditional lifecycle writes."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import select, update

from gigsign.domain.contract import Contract
from gigsign.domain.mixins import utcnow
from gigsign.repositories.base import BaseRepository


class ContractRepository(BaseRepository[Contract]):
    model = Contract

    # ------------------------------------------------------------------
    # Token lookups (exact digest match, tenant-independent)
    # ------------------------------------------------------------------

    async def get_by_reviewer_token(self, token_hash: str) -> Contract | None:
        result = await self._session.execute(
            select(Contract).where(Contract.reviewer_token_hash == token_hash)
        )
        return result.scalars().first()

    async def get_by_signing_token(self, token_hash: str) -> Contract | None:
        result = await self._session.execute(
            select(Contract).where(Contract.signing_token_hash == token_hash)
        )
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    async def apply_transition(
        self,
        contract_id: str,
        *,
        from_statuses: Iterable[str],
        values: dict[str, Any],
        reviewer_token_hash: str | None = None,
        signing_token_hash: str | None = None,
    ) -> bool:
        """UPDATE ... WHERE id = ? AND status IN (...) [AND <token> = ?].

        Returns True only for the caller whose write matched the row; a
        concurrent request that already moved the contract gets False.
        """
        stmt = update(Contract).where(
            Contract.id == contract_id,
            Contract.status.in_(list(from_statuses)),
        )
        if reviewer_token_hash is not None:
            stmt = stmt.where(Contract.reviewer_token_hash == reviewer_token_hash)
        if signing_token_hash is not None:
            stmt = stmt.where(Contract.signing_token_hash == signing_token_hash)

        values = {"updated_at": utcnow(), **values}
        result = await self._session.execute(
            self._scoped(stmt).values(**values).execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Numbering
    # ------------------------------------------------------------------

    async def next_contract_number(self, prefix: str, year: int) -> str:
        """Next number in the ``<PREFIX>-<YYYY>-<NNN>`` series (shared by all tenants)."""
        series = f"{prefix}-{year}-"
        result = await self._session.execute(
            select(Contract.contract_number)
            .where(Contract.contract_number.like(f"{series}%"))
            .order_by(Contract.contract_number.desc())
            .limit(1)
        )
        last = result.scalars().first()
        next_num = 1
        if last:
            try:
                next_num = int(last.removeprefix(series)) + 1
            except ValueError:
                pass
        return f"{series}{next_num:03d}"
