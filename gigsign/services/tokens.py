"""Bearer token issuing for the public review and signing links.

Tokens are 32 random bytes rendered as 64 lowercase hex characters. Only the
SHA-256 digest is persisted; the plaintext leaves the process once, inside
the emailed link.
"""

from __future__ import annotations

import enum
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from gigsign.domain.mixins import utcnow

TOKEN_BYTES = 32
DEFAULT_TTL = timedelta(days=30)


class TokenKind(str, enum.Enum):
    REVIEWER = "reviewer"
    SIGNING = "signing"


@dataclass(frozen=True)
class IssuedToken:
    kind: TokenKind
    value: str
    digest: str
    expires_at: datetime

    def __repr__(self) -> str:  # keep the bearer value out of logs and tracebacks
        return f"IssuedToken(kind={self.kind.value!r}, expires_at={self.expires_at.isoformat()!r})"


def hash_token(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class TokenIssuer:
    def __init__(self, ttl: timedelta = DEFAULT_TTL):
        self._ttl = ttl

    def _issue(self, kind: TokenKind) -> IssuedToken:
        value = secrets.token_hex(TOKEN_BYTES)
        return IssuedToken(
            kind=kind,
            value=value,
            digest=hash_token(value),
            expires_at=utcnow() + self._ttl,
        )

    def issue_reviewer_token(self) -> IssuedToken:
        return self._issue(TokenKind.REVIEWER)

    def issue_signing_token(self) -> IssuedToken:
        return self._issue(TokenKind.SIGNING)
