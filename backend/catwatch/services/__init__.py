"""Services Layer — async orchestration over the IdentityStore protocol.

Invariants:
    - Services depend on core/ and on Protocols, never on SQLAlchemy directly
    - Public service methods return structured results, never raise domain errors

Design Decisions:
    - One service per moderation concern (closure, propagation, single-target, tracking)
"""
