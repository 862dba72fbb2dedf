"""Identifier Hashing — one-way HMAC of network addresses and client IP extraction.

Invariants:
    - Raw addresses never leave this module; only hex HMAC-SHA256 digests do
    - Same (address, key) always yields the same Identifier
    - extract_client_ip never raises; falls back to "unknown"

Design Decisions:
    - HMAC over plain SHA-256: the IPv4 space is small enough to brute-force an
      unkeyed hash
    - Header precedence X-Forwarded-For > X-Real-IP > CF-Connecting-IP > peer,
      first hop of X-Forwarded-For only
"""

import hashlib
import hmac
from typing import Mapping

from catwatch.core.domain_types import Identifier

_CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def hash_identifier(raw: str, key: bytes) -> Identifier:
    """HMAC-SHA256 of a stripped network address, hex encoded."""
    if not key:
        raise ValueError("identifier hash key is not configured")
    digest = hmac.new(key, raw.strip().encode("utf-8"), hashlib.sha256)
    return Identifier(digest.hexdigest())


def parse_hash_key(hex_key: str) -> bytes:
    """Decode the configured hex key. Empty string yields empty bytes."""
    return bytes.fromhex(hex_key.strip()) if hex_key else b""


def extract_client_ip(headers: Mapping[str, str], peer: str | None) -> str:
    """Best-effort client address from proxy headers, then the socket peer."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in _CLIENT_IP_HEADERS:
        value = lowered.get(name, "").strip()
        if value:
            return value.split(",")[0].strip()
    return peer or "unknown"
