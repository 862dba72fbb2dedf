"""Graph Closure Engine — fixed-point BFS over the user/identifier graph.

Invariants:
    - One store lookup per iteration; iterations <= max_iterations
    - Lookups run sequentially; each is a suspension point, nothing runs in parallel
    - State (frontier, processed set) is created per call, never shared
    - capped=True means the result is partial and must be surfaced to operators
    - DatabaseError from the store propagates unchanged (caller aborts, no mutation)

Design Decisions:
    - Engine holds only the store and the budget; ClosureState (core) holds the walk
    - Optional include predicate instead of a second store query: unban walks the
      same graph but only through identifier-propagated bans
"""

import logging
from typing import Callable, Iterable

from catwatch.core.closure_state import ClosureState
from catwatch.core.domain_types import MAX_ITERATIONS, Identifier, UserId
from catwatch.core.identity_records import ClosureResult, UserRecord
from catwatch.core.repository_protocols import IdentityStore

logger = logging.getLogger(__name__)


class GraphClosureEngine:
    """Computes the set of users and identifiers transitively linked to a seed."""

    def __init__(self, store: IdentityStore, max_iterations: int = MAX_ITERATIONS):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.store = store
        self.max_iterations = max_iterations

    async def compute_closure(
        self,
        seed_user_ids: Iterable[UserId],
        seed_identifiers: Iterable[Identifier],
        include: Callable[[UserRecord], bool] | None = None,
    ) -> ClosureResult:
        state = ClosureState.seeded(
            seed_user_ids, seed_identifiers, self.max_iterations,
        )
        while state.should_continue:
            # sorted: deterministic query parameters for a given snapshot
            found = await self.store.find_users_by_identifiers(
                sorted(state.frontier),
            )
            state.absorb(found, include)

        result = state.to_result()
        if result.capped:
            logger.warning(
                "Identifier closure hit the iteration cap; result is partial",
                extra={
                    "iterations": result.iterations,
                    "affected_users": len(result.user_ids),
                },
            )
        return result
