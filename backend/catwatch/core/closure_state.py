"""Closure State — pure bookkeeping for the identifier-frontier BFS.

Invariants:
    - frontier and processed are owned by one computation; never shared
    - processed only grows; an identifier is queried at most once
    - absorb() is the only transition: (frontier, users found) -> next frontier
    - iterations counts store lookups, never exceeds max_iterations
    - capped is True only when the budget ran out with a non-empty frontier

Design Decisions:
    - Dataclass with explicit transition method: the async loop in
      services/graph_closure.py does IO, this module decides what to query next
      (testable without a store)
    - users kept in a dict keyed by id: the first snapshot wins, so repeated
      sightings of a user across iterations do not reorder the result
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable

from catwatch.core.domain_types import MAX_ITERATIONS, Identifier, UserId
from catwatch.core.identity_records import ClosureResult, UserRecord


@dataclass
class ClosureState:
    """Mutable state of one closure walk. Pure — no IO."""

    frontier: set[Identifier] = field(default_factory=set)
    processed: set[Identifier] = field(default_factory=set)
    user_ids: set[UserId] = field(default_factory=set)
    users: dict[UserId, UserRecord] = field(default_factory=dict)
    iterations: int = 0
    max_iterations: int = MAX_ITERATIONS

    @classmethod
    def seeded(
        cls,
        seed_user_ids: Iterable[UserId],
        seed_identifiers: Iterable[Identifier],
        max_iterations: int = MAX_ITERATIONS,
    ) -> "ClosureState":
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        return cls(
            frontier=set(seed_identifiers),
            user_ids=set(seed_user_ids),
            max_iterations=max_iterations,
        )

    @property
    def budget_left(self) -> bool:
        return self.iterations < self.max_iterations

    @property
    def should_continue(self) -> bool:
        return bool(self.frontier) and self.budget_left

    @property
    def capped(self) -> bool:
        return bool(self.frontier) and not self.budget_left

    def absorb(
        self,
        found: Iterable[UserRecord],
        include: Callable[[UserRecord], bool] | None = None,
    ) -> set[Identifier]:
        """Record one lookup of the current frontier and advance it.

        Users rejected by `include` are ignored entirely: they join neither the
        closure nor contribute identifiers to the next frontier.
        """
        collected: set[Identifier] = set()
        for user in found:
            if include is not None and not include(user):
                continue
            self.user_ids.add(user.id)
            self.users.setdefault(user.id, user)
            collected.update(user.identifiers)

        self.iterations += 1
        self.processed.update(self.frontier)
        self.frontier = collected - self.processed
        return self.frontier

    def to_result(self) -> ClosureResult:
        return ClosureResult(
            user_ids=frozenset(self.user_ids),
            identifiers=frozenset(self.processed),
            iterations=self.iterations,
            capped=self.capped,
            users=tuple(self.users.values()),
        )
