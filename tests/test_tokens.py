import re
from datetime import timedelta

from gigsign.domain.mixins import utcnow
from gigsign.services.tokens import TokenIssuer, TokenKind, hash_token


def test_tokens_are_64_hex_chars_and_unique():
    issuer = TokenIssuer()
    values = {issuer.issue_signing_token().value for _ in range(50)}
    assert len(values) == 50
    assert all(re.fullmatch(r"[0-9a-f]{64}", v) for v in values)


def test_digest_is_sha256_of_the_value():
    issued = TokenIssuer().issue_reviewer_token()
    assert issued.kind == TokenKind.REVIEWER
    assert issued.digest == hash_token(issued.value)
    assert issued.digest != issued.value


def test_expiry_follows_ttl():
    before = utcnow()
    issued = TokenIssuer(timedelta(days=30)).issue_signing_token()
    assert before + timedelta(days=30) <= issued.expires_at <= utcnow() + timedelta(days=30)


def test_repr_hides_the_bearer_value():
    issued = TokenIssuer().issue_signing_token()
    assert issued.value not in repr(issued)
