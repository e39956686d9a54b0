"""Public contract links — no login; the bearer token in the path is the credential.

The token is never echoed back and never logged (see AccessLogMiddleware).
Unknown, mistyped and already-used links all answer 404; a link past its
expiry answers 410. Every endpoint is throttled per client IP.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.core.rate_limit import ACTION_LIMIT, VIEW_LIMIT, limiter
from gigsign.core.security import get_audit_context
from gigsign.db.base import get_db
from gigsign.domain.contract import Contract
from gigsign.schemas.contract import (
    ApprovalResponse,
    ContractProjection,
    SignatureResponse,
    SignContractRequest,
)
from gigsign.services.audit import AuditContext
from gigsign.services.notifications import NotificationDispatcher, get_notification_dispatcher
from gigsign.services.review_flow import ReviewFlow
from gigsign.services.sign_flow import SignFlow

router = APIRouter(prefix="/contracts", tags=["Public contract links"])


def _projection(contract: Contract, expires_at: Optional[datetime]) -> ContractProjection:
    return ContractProjection.model_validate(contract).model_copy(
        update={"expires_at": expires_at, "document_hash": contract.document_hash_sha256}
    )


# ------------------------------------------------------------------
# Reviewer
# ------------------------------------------------------------------

@router.get("/review/{token}", response_model=ContractProjection)
@limiter.limit(VIEW_LIMIT)
async def view_as_reviewer(
    request: Request,
    token: str,
    session: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    ctx: AuditContext = Depends(get_audit_context),
):
    contract = await ReviewFlow(session, dispatcher).view(token, ctx)
    return _projection(contract, contract.reviewer_token_expires_at)


@router.post("/review/{token}", response_model=ApprovalResponse)
@limiter.limit(ACTION_LIMIT)
async def approve_as_reviewer(
    request: Request,
    token: str,
    session: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    ctx: AuditContext = Depends(get_audit_context),
):
    """Approve the contract; the signer receives a fresh signing link."""
    contract = await ReviewFlow(session, dispatcher).approve(token, ctx)
    return ApprovalResponse(forwarded_to=contract.signer_email)


# ------------------------------------------------------------------
# Signer
# ------------------------------------------------------------------

@router.get("/sign/{token}", response_model=ContractProjection)
@limiter.limit(VIEW_LIMIT)
async def view_as_signer(
    request: Request,
    token: str,
    session: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    ctx: AuditContext = Depends(get_audit_context),
):
    contract = await SignFlow(session, dispatcher).view(token, ctx)
    return _projection(contract, contract.token_expires_at)


@router.post("/sign/{token}", response_model=SignatureResponse)
@limiter.limit(ACTION_LIMIT)
async def sign(
    request: Request,
    token: str,
    body: Optional[SignContractRequest] = None,
    session: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    ctx: AuditContext = Depends(get_audit_context),
):
    contract = await SignFlow(session, dispatcher).sign(token, body or SignContractRequest(), ctx)
    return SignatureResponse(signed_at=contract.signed_at)
