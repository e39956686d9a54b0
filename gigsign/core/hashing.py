"""Deterministic hashing helpers for document digests and the audit chain."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_dumps(obj: dict[str, Any]) -> str:
    # Sorted keys, no whitespace; non-JSON values (Decimal, date) fall back to str()
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def hash_chain(prev_hash: str | None, payload: dict[str, Any]) -> str:
    return sha256_hex((prev_hash or "") + canonical_dumps(payload))
