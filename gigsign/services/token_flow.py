"""Shared plumbing for the public, token-authenticated contract flows."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.core.config import settings
from gigsign.core.exceptions import InvalidTransitionError, NotFoundError, TokenExpiredError
from gigsign.domain.contract import Contract
from gigsign.domain.mixins import utcnow
from gigsign.repositories.contract import ContractRepository
from gigsign.services.audit import AuditContext, AuditTrail
from gigsign.services.notifications import NotificationDispatcher
from gigsign.services.state_machine import Action, Transition, is_expired, plan
from gigsign.services.tokens import TokenIssuer, TokenKind, hash_token

logger = logging.getLogger(__name__)


class PublicTokenFlow:
    """Resolve a presented bearer token to its contract.

    Outcomes are deliberately coarse: a token that never existed, was
    mistyped, or was already consumed is ``NotFound``; a token that matches
    but is past its expiry is ``Expired`` (and stays that way on every later
    access, because the column is left in place).
    """

    kind: TokenKind
    expired_message = "This link has expired"

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher,
        issuer: Optional[TokenIssuer] = None,
    ):
        self._session = session
        self._repo = ContractRepository(session, client_id=None)
        self._audit = AuditTrail(session)
        self._dispatcher = dispatcher
        self._issuer = issuer or TokenIssuer(timedelta(days=settings.token_ttl_days))

    # Subclass hooks ------------------------------------------------------

    async def _find(self, token_hash: str) -> Optional[Contract]:
        raise NotImplementedError

    def _token_hash(self, contract: Contract) -> Optional[str]:
        raise NotImplementedError

    def _expires_at(self, contract: Contract) -> Optional[datetime]:
        raise NotImplementedError

    def _actor_email(self, contract: Contract) -> Optional[str]:
        raise NotImplementedError

    # Shared steps ---------------------------------------------------------

    async def _resolve(self, token: str, ctx: AuditContext) -> tuple[Contract, str]:
        token_hash = hash_token(token)
        contract = await self._find(token_hash)
        if contract is None:
            raise NotFoundError("Contract")
        if is_expired(self._expires_at(contract), utcnow()):
            await self._expire(contract, ctx)
            raise TokenExpiredError(self.expired_message)
        return contract, token_hash

    async def _expire(self, contract: Contract, ctx: AuditContext) -> None:
        """Move a contract to ``expired`` the first time a stale link is used."""
        try:
            transition = plan(Action.EXPIRE, contract.status)
        except InvalidTransitionError:
            return
        applied = await self._repo.apply_transition(
            contract.id,
            from_statuses=[transition.from_status.value],
            values={"status": transition.to_status.value},
        )
        if not applied:
            return
        await self._audit.record(
            contract, transition.event, ctx.as_actor(self._actor_email(contract)),
            details={"token_kind": self.kind.value},
        )
        # The request fails with 410 next; the expiry itself must persist.
        await self._session.commit()
        logger.info("Contract %s expired (%s link)", contract.contract_number, self.kind.value)

    def _plan_view(self, action: Action, contract: Contract) -> Transition:
        try:
            return plan(action, contract.status)
        except InvalidTransitionError:
            # The link exists but the contract is past the point where it is usable.
            raise NotFoundError("Contract") from None

    async def _apply_view(
        self, contract: Contract, token_hash: str, transition: Transition, values: dict, ctx: AuditContext
    ) -> Contract:
        if not transition.is_noop:
            applied = await self._repo.apply_transition(
                contract.id,
                from_statuses=[transition.from_status.value],
                values={"status": transition.to_status.value, **values},
                **{f"{self.kind.value}_token_hash": token_hash},
            )
            if applied:
                await self._audit.record(contract, transition.event, ctx.as_actor(self._actor_email(contract)))
                logger.info(
                    "Contract %s: %s -> %s",
                    contract.contract_number, transition.from_status.value, transition.to_status.value,
                )
        return await self._reload_live(contract.id, token_hash)

    async def _reload_live(self, contract_id: str, token_hash: str) -> Contract:
        """Re-read the row; NotFound if the token was consumed meanwhile."""
        contract = await self._repo.reload(contract_id)
        if contract is None or self._token_hash(contract) != token_hash:
            raise NotFoundError("Contract")
        return contract
