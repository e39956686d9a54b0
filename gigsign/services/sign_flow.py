"""Signer-facing flow: view a contract and sign it."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from gigsign.core.config import settings
from gigsign.core.exceptions import NotFoundError, NotificationError
from gigsign.domain.contract import Contract, ContractStatus
from gigsign.domain.mixins import utcnow
from gigsign.schemas.contract import SignContractRequest
from gigsign.services.audit import AuditContext
from gigsign.services.documents import signed_document_hash
from gigsign.services.notifications import build_admin_signed_notice, build_signed_confirmation
from gigsign.services.state_machine import Action, allowed_from, plan, validate_signature
from gigsign.services.token_flow import PublicTokenFlow
from gigsign.services.tokens import TokenKind

logger = logging.getLogger(__name__)


class SignFlow(PublicTokenFlow):
    kind = TokenKind.SIGNING
    expired_message = "This signing link has expired"

    async def _find(self, token_hash: str) -> Optional[Contract]:
        return await self._repo.get_by_signing_token(token_hash)

    def _token_hash(self, contract: Contract) -> Optional[str]:
        return contract.signing_token_hash

    def _expires_at(self, contract: Contract) -> Optional[datetime]:
        return contract.token_expires_at

    def _actor_email(self, contract: Contract) -> Optional[str]:
        return contract.signer_email

    async def view(self, token: str, ctx: AuditContext) -> Contract:
        contract, token_hash = await self._resolve(token, ctx)
        transition = self._plan_view(Action.VIEW_AS_SIGNER, contract)
        return await self._apply_view(contract, token_hash, transition, {"viewed_at": utcnow()}, ctx)

    async def sign(self, token: str, data: SignContractRequest, ctx: AuditContext) -> Contract:
        """Record the signature and consume the signing token in one conditional write.

        Of two concurrent requests with the same token only one matches the
        row; the other observes NotFound and leaves no audit entry behind.
        """
        contract, token_hash = await self._resolve(token, ctx)
        transition = plan(Action.SIGN, contract.status)
        validate_signature(data.signer_name, data.signature_image)

        signed_at = utcnow()
        signer_name = data.signer_name.strip()
        signer_title = (data.signer_title or "").strip() or contract.signer_title
        signed_hash = signed_document_hash(
            contract.document_hash_sha256,
            signer_name=signer_name,
            signer_title=signer_title,
            signed_at=signed_at.isoformat(),
            signature_image=data.signature_image,
        )

        applied = await self._repo.apply_transition(
            contract.id,
            from_statuses=[s.value for s in allowed_from(Action.SIGN)],
            signing_token_hash=token_hash,
            values={
                "status": ContractStatus.SIGNED.value,
                "signed_at": signed_at,
                "signature_image": data.signature_image,
                "signer_name": signer_name,
                "signer_title": signer_title,
                "signed_document_hash_sha256": signed_hash,
                "signing_token_hash": None,
            },
        )
        if not applied:
            raise NotFoundError("Contract")

        await self._audit.record(
            contract, transition.event, ctx.as_actor(contract.signer_email),
            details={
                "signer_name": signer_name,
                "signer_title": signer_title,
                "original_hash": contract.document_hash_sha256,
            },
            document_hash=signed_hash,
        )
        logger.info("Contract %s signed", contract.contract_number)

        contract = await self._repo.reload(contract.id)
        await self._send_confirmations(contract, ctx)
        return contract

    async def _send_confirmations(self, contract: Contract, ctx: AuditContext) -> None:
        """Confirmation emails are best-effort; the signature already stands."""
        messages = [build_signed_confirmation(contract)]
        if settings.admin_email:
            messages.append(build_admin_signed_notice(contract, settings.admin_email, ctx.ip_address))
        for message in messages:
            try:
                await self._dispatcher.send(message)
            except NotificationError as exc:
                logger.warning(
                    "Signed confirmation for %s not delivered to %s: %s",
                    contract.contract_number, message.to, exc,
                )
