from __future__ import annotations

import re
from datetime import datetime
from typing import Any

import httpx
import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine

# FORCE model registration
import gigsign.domain  # noqa: F401

from gigsign.core.config import settings
from gigsign.core.exceptions import NotificationError
from gigsign.core.rate_limit import limiter
from gigsign.db.base import Base, get_db, make_session_factory
from gigsign.domain.contract import Contract
from gigsign.main import app as fastapi_app
from gigsign.services.notifications import Notification, get_notification_dispatcher

ADMIN_KEY = "test-admin-key"
ADMIN_EMAIL = "admin@gigsign.test"

SIGNATURE = "data:image/png;base64," + "iVBORw0KGgo" * 20

_LINK = re.compile(r"/(review|sign)/([0-9a-f]{64})")


class RecordingDispatcher:
    """Captures outbound notifications instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self.fail = False

    async def send(self, notification: Notification) -> None:
        if self.fail:
            raise NotificationError("Failed to send email")
        self.sent.append(notification)

    def last_token(self, kind: str) -> str:
        for notification in reversed(self.sent):
            for found_kind, token in _LINK.findall(notification.text):
                if found_kind == kind:
                    return token
        raise AssertionError(f"no {kind} link was sent")


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def admin_settings(monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", ADMIN_KEY)
    monkeypatch.setattr(settings, "admin_email", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "public_app_url", "https://app.gigsign.test")


@pytest.fixture
async def client(session_factory, dispatcher, admin_settings):
    async def _get_db():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    # Limits are per IP and every test client is 127.0.0.1
    limiter.reset()
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_KEY}"}


def contract_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "company_name": "Nordic Strings AB",
        "tier": "Ensemble",
        "annual_price": "12000.00",
        "currency": "SEK",
        "billing_interval": "annual",
        "vat_rate_pct": "25",
        "contract_start_date": "2026-11-01",
        "contract_duration_months": 12,
        "custom_terms": {"seats": 8},
        "signer_name": "Astrid Berg",
        "signer_email": "astrid@nordicstrings.test",
        "signer_title": "Managing Director",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_contract(client, admin_headers):
    async def _create(**overrides: Any) -> dict[str, Any]:
        resp = await client.post("/api/v1/contracts", json=contract_payload(**overrides), headers=admin_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
def send_contract(client, admin_headers):
    async def _send(contract_id: str, **body: Any) -> httpx.Response:
        return await client.post(f"/api/v1/contracts/{contract_id}/send", json=body, headers=admin_headers)

    return _send


@pytest.fixture
def set_columns(session_factory):
    """Write contract columns directly, bypassing the lifecycle."""

    async def _set(contract_id: str, **values: Any) -> None:
        async with session_factory() as s:
            await s.execute(update(Contract).where(Contract.id == contract_id).values(**values))
            await s.commit()

    return _set


@pytest.fixture
def audit_trail(client, admin_headers):
    async def _trail(contract_id: str) -> tuple[list[dict[str, Any]], bool]:
        resp = await client.get(f"/api/v1/contracts/{contract_id}", headers=admin_headers)
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        return data["audit_trail"], data["audit_chain_valid"]

    return _trail


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
