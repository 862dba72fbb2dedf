"""Infrastructure Layer — database, cache and logging adapters.

Invariants:
    - Adapters implement core/repository_protocols.py contracts
    - Driver exceptions are mapped to core/errors.py types at this boundary
"""
