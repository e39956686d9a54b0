"""Contract service — admin side of the contract lifecycle.

Rule: No FastAPI here. Routers pass in the session, the tenant, the
dispatcher and an AuditContext; this module enforces the lifecycle.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.core.config import settings
from gigsign.core.exceptions import ConflictError, NotFoundError
from gigsign.core.pagination import PaginationParams
from gigsign.domain.audit import AuditEvent, ContractAuditEntry
from gigsign.domain.contract import Contract, ContractStatus
from gigsign.domain.mixins import utcnow
from gigsign.repositories.audit import AuditRepository
from gigsign.repositories.contract import ContractRepository
from gigsign.schemas.contract import ContractCreate, ContractUpdate, SendContractRequest
from gigsign.services.audit import AuditContext, AuditTrail, verify_chain
from gigsign.services.documents import document_hash, render_contract_pdf
from gigsign.services.notifications import (
    NotificationDispatcher,
    build_review_invitation,
    build_signing_invitation,
)
from gigsign.services.state_machine import (
    Action,
    Transition,
    plan,
    require_reviewer,
    require_signer,
)
from gigsign.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


class ContractService:
    def __init__(
        self,
        session: AsyncSession,
        client_id: str,
        dispatcher: Optional[NotificationDispatcher] = None,
        issuer: Optional[TokenIssuer] = None,
    ):
        self._repo = ContractRepository(session, client_id)
        self._audit_repo = AuditRepository(session)
        self._audit = AuditTrail(session)
        self._dispatcher = dispatcher
        self._issuer = issuer or TokenIssuer(timedelta(days=settings.token_ttl_days))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_contracts(self, pagination: PaginationParams, status: str | None = None):
        filters = {"status": status} if status else None
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters=filters,
        )

    async def get_contract(self, contract_id: str) -> Contract:
        contract = await self._repo.get_by_id(contract_id)
        if not contract:
            raise NotFoundError("Contract", contract_id)
        return contract

    async def get_contract_with_audit(
        self, contract_id: str
    ) -> tuple[Contract, list[ContractAuditEntry], bool]:
        contract = await self.get_contract(contract_id)
        entries = await self._audit.entries(contract.id)
        return contract, entries, verify_chain(entries)

    # ------------------------------------------------------------------
    # Draft management
    # ------------------------------------------------------------------

    async def create_contract(self, data: ContractCreate, ctx: AuditContext) -> Contract:
        number = await self._repo.next_contract_number(
            settings.contract_number_prefix, utcnow().year
        )
        contract = await self._repo.create(
            contract_number=number,
            status=ContractStatus.DRAFT.value,
            **data.model_dump(),
        )
        digest = document_hash(contract)
        contract = await self._repo.update(contract.id, document_hash_sha256=digest)
        await self._audit.record(
            contract, AuditEvent.CREATED, ctx, details={"contract_number": number},
        )
        logger.info("Contract %s created (tier=%s)", number, contract.tier)
        return contract

    async def update_contract(self, contract_id: str, data: ContractUpdate) -> Contract:
        contract = await self.get_contract(contract_id)
        if contract.status != ContractStatus.DRAFT.value:
            raise ConflictError("Only draft contracts can be edited")

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return contract
        applied = await self._repo.apply_transition(
            contract.id,
            from_statuses=[ContractStatus.DRAFT.value],
            values=changes,
        )
        if not applied:
            raise ConflictError("Only draft contracts can be edited")
        contract = await self._repo.reload(contract.id)
        return await self._repo.update(contract.id, document_hash_sha256=document_hash(contract))

    async def delete_contract(self, contract_id: str) -> None:
        contract = await self.get_contract(contract_id)
        removed = await self._audit_repo.delete_for_contract(contract.id)
        await self._repo.delete(contract.id)
        logger.info("Contract %s deleted with %d audit entries", contract.contract_number, removed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def send_contract(
        self, contract_id: str, request: SendContractRequest, ctx: AuditContext
    ) -> Contract:
        """Issue a fresh link to the reviewer or the signer.

        The other token kind is cleared in the same write, so at most one
        link is live after a send and any earlier link stops working.
        """
        contract = await self.get_contract(contract_id)
        if request.recipient == "reviewer":
            return await self._send_to_reviewer(contract, request, ctx)
        return await self._send_to_signer(contract, ctx)

    async def _send_to_reviewer(
        self, contract: Contract, request: SendContractRequest, ctx: AuditContext
    ) -> Contract:
        transition = plan(Action.SEND_TO_REVIEWER, contract.status)
        reviewer = {
            "reviewer_name": request.reviewer_name or contract.reviewer_name,
            "reviewer_email": request.reviewer_email or contract.reviewer_email,
            "reviewer_title": request.reviewer_title or contract.reviewer_title,
        }
        require_reviewer(reviewer["reviewer_name"], reviewer["reviewer_email"])

        issued = self._issuer.issue_reviewer_token()
        await self._apply(
            contract, transition,
            {
                **reviewer,
                "reviewer_token_hash": issued.digest,
                "reviewer_token_expires_at": issued.expires_at,
                "reviewed_at": None,
                "signing_token_hash": None,
            },
        )
        await self._audit.record(
            contract, transition.event, ctx,
            details={
                "reviewer_email": reviewer["reviewer_email"],
                "token_expires_at": issued.expires_at.isoformat(),
            },
        )
        contract = await self._repo.reload(contract.id)
        await self._notify(build_review_invitation(contract, issued.value, issued.expires_at))
        return contract

    async def _send_to_signer(self, contract: Contract, ctx: AuditContext) -> Contract:
        transition = plan(Action.SEND_TO_SIGNER, contract.status)
        require_signer(contract.signer_email)

        issued = self._issuer.issue_signing_token()
        await self._apply(
            contract, transition,
            {
                "signing_token_hash": issued.digest,
                "token_expires_at": issued.expires_at,
                "sent_at": utcnow(),
                "viewed_at": None,
                "reviewer_token_hash": None,
            },
        )
        await self._audit.record(
            contract, transition.event, ctx,
            details={
                "signer_email": contract.signer_email,
                "token_expires_at": issued.expires_at.isoformat(),
            },
        )
        contract = await self._repo.reload(contract.id)
        await self._notify(build_signing_invitation(contract, issued.value, issued.expires_at))
        return contract

    async def cancel_contract(self, contract_id: str, ctx: AuditContext) -> Contract:
        contract = await self.get_contract(contract_id)
        transition = plan(Action.CANCEL, contract.status)
        await self._apply(
            contract, transition,
            {"reviewer_token_hash": None, "signing_token_hash": None},
        )
        await self._audit.record(
            contract, transition.event, ctx, details={"previous_status": transition.from_status.value},
        )
        return await self._repo.reload(contract.id)

    async def render_document(self, contract_id: str, kind: str) -> tuple[str, bytes]:
        """Return ``(filename, pdf_bytes)``; the signed copy exists only after signing."""
        contract = await self.get_contract(contract_id)
        if kind == "signed" and contract.status != ContractStatus.SIGNED.value:
            raise NotFoundError("Signed document")
        pdf = render_contract_pdf(contract, signed=kind == "signed")
        return f"{contract.contract_number}-{kind}.pdf", pdf

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _apply(self, contract: Contract, transition: Transition, values: dict) -> None:
        applied = await self._repo.apply_transition(
            contract.id,
            from_statuses=[transition.from_status.value],
            values={"status": transition.to_status.value, **values},
        )
        if not applied:
            raise ConflictError("Contract was modified concurrently; reload and retry")
        logger.info(
            "Contract %s: %s -> %s",
            contract.contract_number, transition.from_status.value, transition.to_status.value,
        )

    async def _notify(self, notification) -> None:
        if self._dispatcher is None:
            raise RuntimeError("ContractService needs a NotificationDispatcher to send links")
        await self._dispatcher.send(notification)
