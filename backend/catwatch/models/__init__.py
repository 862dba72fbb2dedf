"""ORM Models — SQLAlchemy declarative models for identity and ban ledger tables.

Invariants:
    - All models inherit from Base (db/base.py)
    - ORM rows never leave infrastructure/: identity_store.py maps them to core records

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from catwatch.models.user import User  # noqa: F401
from catwatch.models.user_identifier import UserIdentifier  # noqa: F401
from catwatch.models.banned_identifier import BannedIdentifier  # noqa: F401
