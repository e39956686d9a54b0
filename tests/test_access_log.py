import logging

from gigsign.middleware.access_log import redact_path


def test_redacts_public_link_tokens():
    token = "ab" * 32
    assert redact_path(f"/api/v1/contracts/sign/{token}") == "/api/v1/contracts/sign/***"
    assert redact_path(f"/api/v1/contracts/review/{token}") == "/api/v1/contracts/review/***"
    assert redact_path("/api/v1/contracts/1234/pdf") == "/api/v1/contracts/1234/pdf"


async def test_access_log_line_has_no_token(client, caplog):
    token = "cd" * 32
    with caplog.at_level(logging.INFO, logger="gigsign.access"):
        resp = await client.get(f"/api/v1/contracts/sign/{token}", headers={"X-Forwarded-For": "203.0.113.9"})
    assert resp.status_code == 404
    assert "/api/v1/contracts/sign/***" in caplog.text
    assert token not in caplog.text
