"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and Identifier wrap str — never pass raw IP addresses as Identifier
    - Identifier values are HMAC-SHA256 hex digests (see identity_hashing.py)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
Identifier = NewType("Identifier", str)


# ─── Constants ───────────────────────────────────────────────────

# Safety valve for dense components (shared NAT gateways, campus networks)
MAX_ITERATIONS = 10

# Marks bans applied by identifier propagation; unban walks only these
IDENTIFIER_BAN_PREFIX = "IP ban: "

# users.ban_reason column width; operator reasons leave room for the prefix
BAN_REASON_COLUMN_LENGTH = 500
REASON_MAX_LENGTH = BAN_REASON_COLUMN_LENGTH - len(IDENTIFIER_BAN_PREFIX)


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    """Account roles, lowest to highest. Ranking lives in core/roles.py."""
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class BanPolicyMode(str, Enum):
    """Role-protection strategy for identifier ban propagation."""
    STRICT = "strict"
    PERMISSIVE = "permissive"


class PropagationStatus(str, Enum):
    """Outcome codes for ban/unban operations."""
    OK = "OK"
    SAFETY_LIMIT_REACHED = "SAFETY_LIMIT_REACHED"
    NOT_FOUND = "NOT_FOUND"
    NO_IDENTIFIERS = "NO_IDENTIFIERS"
    POLICY_BLOCKED = "POLICY_BLOCKED"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
