"""Reviewer-facing flow: view a contract and approve it onward to the signer."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from gigsign.core.exceptions import NotFoundError
from gigsign.domain.contract import Contract, ContractStatus
from gigsign.domain.mixins import utcnow
from gigsign.services.audit import AuditContext
from gigsign.services.notifications import build_signing_invitation
from gigsign.services.state_machine import Action, allowed_from, plan, require_signer
from gigsign.services.token_flow import PublicTokenFlow
from gigsign.services.tokens import TokenKind

logger = logging.getLogger(__name__)


class ReviewFlow(PublicTokenFlow):
    kind = TokenKind.REVIEWER
    expired_message = "This review link has expired"

    async def _find(self, token_hash: str) -> Optional[Contract]:
        return await self._repo.get_by_reviewer_token(token_hash)

    def _token_hash(self, contract: Contract) -> Optional[str]:
        return contract.reviewer_token_hash

    def _expires_at(self, contract: Contract) -> Optional[datetime]:
        return contract.reviewer_token_expires_at

    def _actor_email(self, contract: Contract) -> Optional[str]:
        return contract.reviewer_email

    async def view(self, token: str, ctx: AuditContext) -> Contract:
        """First view moves ``sent_to_reviewer`` to ``reviewed``; later views change nothing."""
        contract, token_hash = await self._resolve(token, ctx)
        transition = self._plan_view(Action.VIEW_AS_REVIEWER, contract)
        return await self._apply_view(contract, token_hash, transition, {"reviewed_at": utcnow()}, ctx)

    async def approve(self, token: str, ctx: AuditContext) -> Contract:
        """Hand the contract to the signer.

        Retiring the reviewer token and minting the signing token is one
        conditional write keyed on the reviewer token still being present, so
        a replayed or concurrent approval matches nothing and gets NotFound.
        """
        contract, token_hash = await self._resolve(token, ctx)
        transition = plan(Action.APPROVE_AS_REVIEWER, contract.status)
        require_signer(contract.signer_email)

        issued = self._issuer.issue_signing_token()
        now = utcnow()
        applied = await self._repo.apply_transition(
            contract.id,
            from_statuses=[s.value for s in allowed_from(Action.APPROVE_AS_REVIEWER)],
            reviewer_token_hash=token_hash,
            values={
                "status": ContractStatus.SENT.value,
                "reviewer_token_hash": None,
                "signing_token_hash": issued.digest,
                "token_expires_at": issued.expires_at,
                "reviewed_at": contract.reviewed_at or now,
                "sent_at": now,
            },
        )
        if not applied:
            raise NotFoundError("Contract")

        await self._audit.record(
            contract, transition.event, ctx.as_actor(contract.reviewer_email),
            details={
                "forwarded_to": contract.signer_email,
                "token_expires_at": issued.expires_at.isoformat(),
            },
        )
        logger.info(
            "Contract %s approved by reviewer, forwarded to signer", contract.contract_number,
        )

        contract = await self._repo.reload(contract.id)
        await self._dispatcher.send(
            build_signing_invitation(
                contract, issued.value, issued.expires_at,
                reviewed_by=contract.reviewer_name or contract.reviewer_email,
            )
        )
        return contract
