"""Request identity helpers: the admin bearer key and the caller's network context."""

import secrets
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gigsign.core.config import settings
from gigsign.core.exceptions import UnauthorizedError
from gigsign.services.audit import AuditContext

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminPrincipal:
    client_id: str
    email: str | None = None


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AdminPrincipal:
    """FastAPI dependency guarding the back-office endpoints.

    With no ``ADMIN_API_KEY`` configured every admin request is refused.
    """
    expected = settings.admin_api_key
    if not expected or credentials is None:
        raise UnauthorizedError()
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise UnauthorizedError("Invalid API key")
    return AdminPrincipal(client_id=settings.default_client_id, email=settings.admin_email)


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def get_audit_context(request: Request) -> AuditContext:
    """Network context for audit entries; services attach the actor email."""
    return AuditContext(ip_address=client_ip(request), user_agent=request.headers.get("user-agent"))
