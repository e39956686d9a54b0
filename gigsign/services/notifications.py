"""Outbound contract emails.

The dispatcher is a narrow boundary: the lifecycle code builds a
:class:`Notification` and hands it over. Two backends exist:

  LogDispatcher     — development; logs recipient + subject, never the body
                      (the body carries a live bearer link)
  ResendDispatcher  — delivers through the Resend HTTP API with httpx
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional, Protocol

import httpx

from gigsign.core.config import settings
from gigsign.core.exceptions import NotificationError
from gigsign.domain.contract import Contract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    to: str
    subject: str
    html: str
    text: str


class NotificationDispatcher(Protocol):
    async def send(self, notification: Notification) -> None: ...


class LogDispatcher:
    """Stands in for real delivery when no email provider is configured."""

    async def send(self, notification: Notification) -> None:
        logger.info("Email (not delivered, log backend) to=%s subject=%r", notification.to, notification.subject)


class ResendDispatcher:
    def __init__(
        self,
        api_key: str,
        from_email: str,
        *,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 15,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._from_email = from_email
        self._api_url = api_url
        self._timeout = timeout
        self._client = client

    async def send(self, notification: Notification) -> None:
        payload = {
            "from": self._from_email,
            "to": [notification.to],
            "subject": notification.subject,
            "html": notification.html,
            "text": notification.text,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._client is not None:
                response = await self._client.post(self._api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Email provider rejected message to %s: HTTP %d", notification.to, exc.response.status_code
            )
            raise NotificationError("Failed to send email") from exc
        except httpx.HTTPError as exc:
            logger.error("Email provider unreachable while sending to %s: %s", notification.to, exc)
            raise NotificationError("Failed to send email") from exc
        logger.info("Email sent to=%s subject=%r", notification.to, notification.subject)


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency: pick the backend from settings."""
    if settings.email_enabled:
        return ResendDispatcher(
            settings.resend_api_key or "",
            settings.resend_from_email,
            api_url=settings.resend_api_url,
            timeout=settings.resend_timeout,
        )
    return LogDispatcher()


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------

def review_link(token: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/review/{token}"


def signing_link(token: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/sign/{token}"


def _summary_rows(contract: Contract, extra: tuple[tuple[str, str], ...] = ()) -> str:
    rows = (
        ("Organization", contract.company_name or "N/A"),
        ("Tier", contract.tier),
        ("Annual price", f"{contract.annual_price} {contract.currency}"),
        ("Duration", f"{contract.contract_duration_months} months"),
    ) + extra
    return "".join(
        f"<tr><td style=\"padding:4px 0;color:#6b7280;\">{escape(label)}</td>"
        f"<td style=\"padding:4px 0;font-weight:600;\">{escape(str(value))}</td></tr>"
        for label, value in rows
    )


def _invitation(
    contract: Contract,
    *,
    to: str,
    subject: str,
    intro: str,
    link: str,
    button: str,
    expires_at: datetime,
    extra: tuple[tuple[str, str], ...] = (),
) -> Notification:
    expires = expires_at.date().isoformat()
    html = (
        "<div style=\"font-family:-apple-system,'Segoe UI',sans-serif;max-width:600px;margin:0 auto;padding:20px;\">"
        "<h2 style=\"color:#111827;\">Subscription Agreement</h2>"
        f"<p style=\"color:#6b7280;font-size:14px;\">{escape(intro)}</p>"
        f"<table style=\"width:100%;font-size:14px;\">{_summary_rows(contract, extra)}</table>"
        f"<p style=\"text-align:center;margin:32px 0;\"><a href=\"{escape(link)}\">{escape(button)}</a></p>"
        f"<p style=\"color:#9ca3af;font-size:12px;text-align:center;\">This link expires on {expires}.<br/>"
        "If you did not expect this email, please disregard it.</p>"
        "</div>"
    )
    text = f"{intro}\n\n{button}: {link}\n\nThis link expires on {expires}."
    return Notification(to=to, subject=subject, html=html, text=text)


def build_review_invitation(contract: Contract, token: str, expires_at: datetime) -> Notification:
    return _invitation(
        contract,
        to=contract.reviewer_email or "",
        subject=f"Agreement Ready for Review — {contract.contract_number}",
        intro=f"Agreement {contract.contract_number} is ready for your review before it goes to the signer.",
        link=review_link(token),
        button="Review Agreement",
        expires_at=expires_at,
        extra=(("Signer", contract.signer_name),),
    )


def build_signing_invitation(
    contract: Contract, token: str, expires_at: datetime, *, reviewed_by: Optional[str] = None
) -> Notification:
    if reviewed_by:
        intro = (
            f"Agreement {contract.contract_number} has been reviewed and approved. "
            "It is now ready for your signature."
        )
        extra: tuple[tuple[str, str], ...] = (("Reviewed by", reviewed_by),)
    else:
        intro = f"Agreement {contract.contract_number} is ready for your review and signature."
        extra = ()
    return _invitation(
        contract,
        to=contract.signer_email,
        subject=f"Agreement Ready for Signing — {contract.contract_number}",
        intro=intro,
        link=signing_link(token),
        button="Review and Sign Agreement",
        expires_at=expires_at,
        extra=extra,
    )


def build_signed_confirmation(contract: Contract) -> Notification:
    digest = (contract.signed_document_hash_sha256 or "")[:16]
    intro = f"Your subscription agreement {contract.contract_number} has been signed."
    html = (
        "<div style=\"font-family:-apple-system,'Segoe UI',sans-serif;max-width:600px;margin:0 auto;padding:20px;\">"
        "<h2 style=\"color:#111827;\">Agreement Signed Successfully</h2>"
        f"<p style=\"color:#6b7280;\">{escape(intro)}</p>"
        "<p style=\"color:#6b7280;\">A copy of the signed agreement will be provided by the service administrator.</p>"
        f"<p style=\"color:#9ca3af;font-size:12px;\">Document hash: {digest}...</p>"
        "</div>"
    )
    return Notification(
        to=contract.signer_email,
        subject=f"Agreement Signed — {contract.contract_number}",
        html=html,
        text=f"{intro}\nDocument hash: {digest}...",
    )


def build_admin_signed_notice(contract: Contract, admin_email: str, ip_address: Optional[str]) -> Notification:
    signed_at = contract.signed_at.isoformat() if contract.signed_at else "-"
    line = (
        f"{contract.signer_name} ({contract.signer_email}) has signed contract "
        f"{contract.contract_number}. IP: {ip_address or 'unknown'} | Time: {signed_at}"
    )
    return Notification(
        to=admin_email,
        subject=f"Contract Signed: {contract.contract_number}",
        html=f"<div><h2>Contract Signed</h2><p>{escape(line)}</p></div>",
        text=line,
    )
