"""Error Hierarchy — tests for codes, statuses and REST envelopes."""

from catwatch.core.domain_types import PropagationStatus, UserId, UserRole
from catwatch.core.errors import (
    DatabaseError, ErrorContext, NoIdentifiersError, PolicyBlockedError,
    ResourceNotFoundError,
)
from catwatch.core.identity_records import UserRecord


def test_not_found_maps_to_404_and_status():
    err = ResourceNotFoundError("User", "u1")
    assert err.http_status == 404
    assert err.status == PropagationStatus.NOT_FOUND
    assert "u1" in err.message


def test_policy_blocked_names_blocking_users():
    boss = UserRecord(id=UserId("b"), username="boss", role=UserRole.SUPERADMIN)
    err = PolicyBlockedError([boss], "strict")
    assert err.status == PropagationStatus.POLICY_BLOCKED
    assert err.http_status == 403
    assert "boss" in err.message


def test_database_error_is_store_unavailable():
    err = DatabaseError("timeout", "execute")
    assert err.status == PropagationStatus.STORE_UNAVAILABLE
    assert err.http_status == 503


def test_to_response_envelope():
    err = NoIdentifiersError("u1", ErrorContext(actor_id="a1"))
    body = err.to_response()["error"]
    assert body["code"] == "NO_IDENTIFIERS"
    assert body["category"] == "business_rule"
    assert body["context"]["actor_id"] == "a1"
