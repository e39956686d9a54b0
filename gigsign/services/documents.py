"""Contract document digests and PDF rendering.

The digest is the SHA-256 of the canonical JSON of the terms and parties; it
is what the audit trail pins, so it must not depend on PDF byte layout.
PDF rendering uses PyMuPDF and runs on demand for the admin download.
"""

import base64
import binascii
import logging
import re
from typing import Any

from gigsign.core.hashing import canonical_dumps, hash_chain, sha256_hex
from gigsign.domain.contract import Contract

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z+]+;base64,", re.IGNORECASE)

_PAGE_MARGIN = 72
_LINE_HEIGHT = 18
_SIGNATURE_HEIGHT = 80


def terms_payload(contract: Contract) -> dict[str, Any]:
    return {
        "contract_number": contract.contract_number,
        "tier": contract.tier,
        "annual_price": str(contract.annual_price),
        "currency": contract.currency,
        "billing_interval": contract.billing_interval,
        "vat_rate_pct": str(contract.vat_rate_pct),
        "contract_start_date": contract.contract_start_date.isoformat(),
        "contract_duration_months": contract.contract_duration_months,
        "custom_terms": contract.custom_terms or {},
        "company_name": contract.company_name,
        "signer_name": contract.signer_name,
        "signer_email": contract.signer_email,
        "signer_title": contract.signer_title,
    }


def document_hash(contract: Contract) -> str:
    return sha256_hex(canonical_dumps(terms_payload(contract)))


def signed_document_hash(
    base_hash: str | None, *, signer_name: str, signer_title: str | None, signed_at: str, signature_image: str
) -> str:
    """Chain the unsigned document hash with the facts captured at signing."""
    return hash_chain(
        base_hash,
        {
            "signer_name": signer_name,
            "signer_title": signer_title,
            "signed_at": signed_at,
            "signature_sha256": sha256_hex(signature_image),
        },
    )


def _decode_signature(signature_image: str) -> bytes | None:
    try:
        return base64.b64decode(_DATA_URL_PREFIX.sub("", signature_image), validate=True)
    except (binascii.Error, ValueError):
        return None


def _body_lines(contract: Contract) -> list[str]:
    lines = [
        f"Agreement {contract.contract_number}",
        "",
        f"Organization: {contract.company_name or 'N/A'}",
        f"Tier: {contract.tier}",
        f"Annual price: {contract.annual_price} {contract.currency} (VAT {contract.vat_rate_pct}%)",
        f"Billing interval: {contract.billing_interval}",
        f"Start date: {contract.contract_start_date.isoformat()}",
        f"Duration: {contract.contract_duration_months} months",
    ]
    for key, value in sorted((contract.custom_terms or {}).items()):
        lines.append(f"{key}: {value}")
    lines += [
        "",
        f"Signer: {contract.signer_name} <{contract.signer_email}>"
        + (f", {contract.signer_title}" if contract.signer_title else ""),
        f"Document hash: {contract.document_hash_sha256 or '-'}",
    ]
    return lines


def _next_line(doc, page, y: float, below: float = 0):
    """Page and y to draw at; starts a new page once ``y + below`` crosses the bottom margin."""
    if y + below > page.rect.height - _PAGE_MARGIN:
        return doc.new_page(), _PAGE_MARGIN
    return page, y


def render_contract_pdf(contract: Contract, *, signed: bool = False) -> bytes:
    """Render the agreement as a PDF (signature block when ``signed``); long terms flow onto extra pages."""
    import fitz  # PyMuPDF, imported lazily

    doc = fitz.open()
    try:
        page = doc.new_page()
        y = _PAGE_MARGIN
        page.insert_text((_PAGE_MARGIN, y), "Subscription Agreement", fontsize=18)
        y += _LINE_HEIGHT * 2
        for line in _body_lines(contract):
            page, y = _next_line(doc, page, y)
            page.insert_text((_PAGE_MARGIN, y), line, fontsize=11)
            y += _LINE_HEIGHT

        if signed and contract.signed_at:
            y += _LINE_HEIGHT
            page, y = _next_line(doc, page, y)
            page.insert_text((_PAGE_MARGIN, y), f"Signed at: {contract.signed_at.isoformat()}", fontsize=11)
            y += _LINE_HEIGHT
            page, y = _next_line(doc, page, y)
            page.insert_text(
                (_PAGE_MARGIN, y),
                f"Signed document hash: {contract.signed_document_hash_sha256 or '-'}",
                fontsize=9,
            )
            y += _LINE_HEIGHT
            # Keep the signature box whole on one page.
            page, y = _next_line(doc, page, y, below=_SIGNATURE_HEIGHT)
            image = _decode_signature(contract.signature_image or "")
            rect = fitz.Rect(_PAGE_MARGIN, y, _PAGE_MARGIN + 200, y + _SIGNATURE_HEIGHT)
            inserted = False
            if image:
                try:
                    page.insert_image(rect, stream=image)
                    inserted = True
                except Exception as exc:
                    logger.warning("Signature image for %s not renderable: %s", contract.contract_number, exc)
            if not inserted:
                page.insert_text((_PAGE_MARGIN, y + _LINE_HEIGHT), "[signature on file]", fontsize=11)

        return doc.tobytes()
    finally:
        doc.close()
