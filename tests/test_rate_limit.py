"""Per-IP throttling of the public contract links."""

from tests.conftest import SIGNATURE

UNKNOWN_TOKEN = "ab" * 32


async def test_fourth_sign_attempt_within_a_minute_is_throttled(client):
    url = f"/api/v1/contracts/sign/{UNKNOWN_TOKEN}"
    payload = {"signer_name": "Astrid Berg", "signature_image": SIGNATURE}
    for _ in range(3):
        assert (await client.post(url, json=payload)).status_code == 404

    resp = await client.post(url, json=payload)
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "RATE_LIMITED"


async def test_approve_limit_is_shared_across_tokens(client):
    for i in range(3):
        resp = await client.post(f"/api/v1/contracts/review/{str(i) * 64}")
        assert resp.status_code == 404

    resp = await client.post(f"/api/v1/contracts/review/{UNKNOWN_TOKEN}")
    assert resp.status_code == 429


async def test_views_allow_ten_per_minute(client):
    url = f"/api/v1/contracts/review/{UNKNOWN_TOKEN}"
    for _ in range(10):
        assert (await client.get(url)).status_code == 404

    assert (await client.get(url)).status_code == 429


async def test_limit_is_keyed_on_forwarded_client_ip(client):
    url = f"/api/v1/contracts/sign/{UNKNOWN_TOKEN}"
    for _ in range(3):
        await client.post(url, headers={"X-Forwarded-For": "203.0.113.7"})

    blocked = await client.post(url, headers={"X-Forwarded-For": "203.0.113.7"})
    other = await client.post(url, headers={"X-Forwarded-For": "198.51.100.20, 10.0.0.1"})
    assert blocked.status_code == 429
    assert other.status_code == 404


async def test_admin_routes_are_not_throttled(client, admin_headers):
    for _ in range(12):
        resp = await client.get("/api/v1/contracts", headers=admin_headers)
        assert resp.status_code == 200
