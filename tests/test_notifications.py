import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal

import httpx
import pytest

from gigsign.core.exceptions import NotificationError
from gigsign.domain.contract import Contract
from gigsign.services.notifications import (
    LogDispatcher,
    Notification,
    ResendDispatcher,
    build_review_invitation,
    build_signing_invitation,
)

TOKEN = "ab" * 32
EXPIRES = datetime(2026, 11, 18, tzinfo=timezone.utc)


def _contract() -> Contract:
    return Contract(
        contract_number="SS-2026-003",
        tier="Solo",
        annual_price=Decimal("1200.00"),
        currency="SEK",
        contract_start_date=date(2026, 11, 1),
        contract_duration_months=12,
        signer_name="Astrid Berg",
        signer_email="astrid@nordicstrings.test",
        reviewer_name="Lars Holm",
        reviewer_email="lars@nordicstrings.test",
    )


def test_review_invitation_links_to_review_page(admin_settings):
    message = build_review_invitation(_contract(), TOKEN, EXPIRES)
    assert message.to == "lars@nordicstrings.test"
    assert f"https://app.gigsign.test/review/{TOKEN}" in message.text
    assert "SS-2026-003" in message.subject
    assert "2026-11-18" in message.html


def test_signing_invitation_mentions_reviewer(admin_settings):
    message = build_signing_invitation(_contract(), TOKEN, EXPIRES, reviewed_by="Lars Holm")
    assert message.to == "astrid@nordicstrings.test"
    assert f"https://app.gigsign.test/sign/{TOKEN}" in message.text
    assert "Lars Holm" in message.html


async def test_log_dispatcher_never_logs_the_link(caplog):
    message = build_signing_invitation(_contract(), TOKEN, EXPIRES)
    with caplog.at_level(logging.INFO, logger="gigsign.services.notifications"):
        await LogDispatcher().send(message)
    assert "astrid@nordicstrings.test" in caplog.text
    assert TOKEN not in caplog.text


async def test_resend_dispatcher_posts_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email_123"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        dispatcher = ResendDispatcher("re_test", "noreply@gigsign.test", client=client)
        await dispatcher.send(Notification("a@b.test", "Hello", "<p>hi</p>", "hi"))

    assert captured["auth"] == "Bearer re_test"
    assert captured["body"]["to"] == ["a@b.test"]
    assert captured["body"]["from"] == "noreply@gigsign.test"


async def test_resend_dispatcher_raises_on_rejection():
    transport = httpx.MockTransport(lambda request: httpx.Response(422, json={"message": "bad"}))
    async with httpx.AsyncClient(transport=transport) as client:
        dispatcher = ResendDispatcher("re_test", "noreply@gigsign.test", client=client)
        with pytest.raises(NotificationError):
            await dispatcher.send(Notification("a@b.test", "Hello", "<p>hi</p>", "hi"))
