"""Admin contract router — back-office CRUD and lifecycle actions.

Every endpoint requires ``Authorization: Bearer <ADMIN_API_KEY>``. The
service is instantiated per request with the admin's tenant, the request
session and the configured notification dispatcher.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from gigsign.core.pagination import PaginationParams
from gigsign.core.response import DataResponse, ListResponse, paginated
from gigsign.core.security import AdminPrincipal, get_audit_context, require_admin
from gigsign.db.base import get_db
from gigsign.domain.contract import ContractStatus
from gigsign.schemas.contract import (
    AuditEntryOut,
    ContractCreate,
    ContractDetailOut,
    ContractOut,
    ContractUpdate,
    SendContractRequest,
    SendContractResponse,
)
from gigsign.services.audit import AuditContext
from gigsign.services.contracts import ContractService
from gigsign.services.notifications import NotificationDispatcher, get_notification_dispatcher

router = APIRouter(prefix="/contracts", tags=["Contracts"])


# ------------------------------------------------------------------
# Helper: instantiate service with session + admin tenant
# ------------------------------------------------------------------

def _svc(
    session: AsyncSession,
    admin: AdminPrincipal,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> ContractService:
    return ContractService(session, admin.client_id, dispatcher=dispatcher)


def _admin_ctx(ctx: AuditContext, admin: AdminPrincipal) -> AuditContext:
    return ctx.as_actor(admin.email)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[ContractOut])
async def list_contracts(
    filter_status: Optional[ContractStatus] = Query(default=None, alias="status", description="Filter by status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    """List contracts (paginated), newest first by default."""
    items, total = await _svc(session, admin).list_contracts(
        pagination, status=filter_status.value if filter_status else None,
    )
    return paginated([ContractOut.model_validate(c) for c in items], total, pagination)


@router.post("", response_model=DataResponse[ContractOut], status_code=status.HTTP_201_CREATED)
async def create_contract(
    body: ContractCreate,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
    ctx: AuditContext = Depends(get_audit_context),
):
    """Create a draft contract with the next contract number."""
    contract = await _svc(session, admin).create_contract(body, _admin_ctx(ctx, admin))
    return {"data": ContractOut.model_validate(contract)}


@router.get("/{contract_id}", response_model=DataResponse[ContractDetailOut])
async def get_contract(
    contract_id: str,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    contract, entries, chain_valid = await _svc(session, admin).get_contract_with_audit(contract_id)
    detail = ContractDetailOut.model_validate(contract).model_copy(
        update={
            "audit_trail": [AuditEntryOut.model_validate(e) for e in entries],
            "audit_chain_valid": chain_valid,
        }
    )
    return {"data": detail}


@router.patch("/{contract_id}", response_model=DataResponse[ContractOut])
async def update_contract(
    contract_id: str,
    body: ContractUpdate,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    """Edit terms or parties; drafts only."""
    contract = await _svc(session, admin).update_contract(contract_id, body)
    return {"data": ContractOut.model_validate(contract)}


@router.post("/{contract_id}/send", response_model=SendContractResponse)
async def send_contract(
    contract_id: str,
    body: Optional[SendContractRequest] = None,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    ctx: AuditContext = Depends(get_audit_context),
):
    """Email a fresh link to the signer (default) or to the reviewer."""
    body = body or SendContractRequest()
    contract = await _svc(session, admin, dispatcher).send_contract(
        contract_id, body, _admin_ctx(ctx, admin),
    )
    sent_to = contract.reviewer_email if body.recipient == "reviewer" else contract.signer_email
    return SendContractResponse(sent_to=sent_to, status=contract.status)


@router.post("/{contract_id}/cancel", response_model=DataResponse[ContractOut])
async def cancel_contract(
    contract_id: str,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
    ctx: AuditContext = Depends(get_audit_context),
):
    contract = await _svc(session, admin).cancel_contract(contract_id, _admin_ctx(ctx, admin))
    return {"data": ContractOut.model_validate(contract)}


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contract(
    contract_id: str,
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    await _svc(session, admin).delete_contract(contract_id)


@router.get("/{contract_id}/pdf")
async def download_pdf(
    contract_id: str,
    kind: Literal["unsigned", "signed"] = Query(default="unsigned", alias="type"),
    session: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    filename, pdf = await _svc(session, admin).render_document(contract_id, kind)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
