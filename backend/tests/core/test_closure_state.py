"""Closure State — tests for the pure frontier bookkeeping.

Tests cover:
    - absorb() advances the frontier to unseen identifiers only
    - processed identifiers are never re-queued
    - include predicate drops users and their identifiers
    - capped only when the budget is spent with a frontier left
    - seeded() rejects a zero budget
"""

import pytest

from catwatch.core.closure_state import ClosureState
from catwatch.core.domain_types import Identifier, UserId
from catwatch.core.identity_records import UserRecord


def _user(uid: str, *identifiers: str, **fields) -> UserRecord:
    return UserRecord(
        id=UserId(uid),
        identifiers=frozenset(Identifier(i) for i in identifiers),
        **fields,
    )


def test_seeded_state_starts_with_seed_frontier():
    state = ClosureState.seeded(["a"], ["h1", "h2"])
    assert state.frontier == {"h1", "h2"}
    assert state.user_ids == {"a"}
    assert state.iterations == 0
    assert state.should_continue


def test_absorb_advances_to_unseen_identifiers():
    state = ClosureState.seeded(["a"], ["h1"])
    nxt = state.absorb([_user("a", "h1"), _user("b", "h1", "h2")])
    assert nxt == {"h2"}
    assert state.processed == {"h1"}
    assert state.user_ids == {"a", "b"}
    assert state.iterations == 1


def test_absorb_never_requeues_processed_identifiers():
    state = ClosureState.seeded(["a"], ["h1"])
    state.absorb([_user("a", "h1"), _user("b", "h1", "h2")])
    nxt = state.absorb([_user("b", "h1", "h2")])
    assert nxt == set()
    assert not state.should_continue
    assert state.to_result().identifiers == {"h1", "h2"}


def test_include_predicate_drops_user_and_identifiers():
    state = ClosureState.seeded(["a"], ["h1"])
    nxt = state.absorb(
        [_user("a", "h1"), _user("b", "h1", "h9")],
        include=lambda u: u.id == "a",
    )
    assert nxt == set()
    assert state.user_ids == {"a"}


def test_capped_when_budget_spent_with_frontier_left():
    state = ClosureState.seeded(["a"], ["h1"], max_iterations=1)
    state.absorb([_user("a", "h1"), _user("b", "h1", "h2")])
    result = state.to_result()
    assert result.capped is True
    assert result.iterations == 1
    assert result.identifiers == {"h1"}


def test_not_capped_when_fixed_point_hits_on_last_iteration():
    state = ClosureState.seeded(["a"], ["h1"], max_iterations=1)
    state.absorb([_user("a", "h1")])
    assert state.to_result().capped is False


def test_first_snapshot_of_user_wins():
    state = ClosureState.seeded(["a"], ["h1"])
    first = _user("b", "h1", "h2", username="first")
    state.absorb([first])
    state.absorb([_user("b", "h1", "h2", username="second")])
    assert state.users["b"].username == "first"


def test_seeded_rejects_zero_budget():
    with pytest.raises(ValueError):
        ClosureState.seeded(["a"], ["h1"], max_iterations=0)
