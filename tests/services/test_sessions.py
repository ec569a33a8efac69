"""Tests for the pending-session store."""

from __future__ import annotations

import time

from covenant_gate.services.sessions import SessionStore, VerificationSession


def _session(user_id: str = "42", challenge: str = "c-1", channel_id: str = "100", **kwargs) -> VerificationSession:
    return VerificationSession(
        user_id=user_id,
        wallet="0x" + "a" * 40,
        challenge=challenge,
        channel_id=channel_id,
        **kwargs,
    )


def test_put_and_get_round_trip() -> None:
    store = SessionStore()
    session = _session()

    assert store.put(session) is None
    assert store.get("42") == session
    assert len(store) == 1


def test_put_returns_replaced_session() -> None:
    store = SessionStore()
    first = _session(challenge="c-1", channel_id="100")
    second = _session(challenge="c-2", channel_id="101")

    store.put(first)
    replaced = store.put(second)

    assert replaced == first
    assert store.get("42") == second
    assert len(store) == 1


def test_consume_removes_session_exactly_once() -> None:
    store = SessionStore()
    store.put(_session())

    assert store.consume("42", "c-1") is not None
    assert store.consume("42", "c-1") is None
    assert store.get("42") is None


def test_consume_ignores_superseded_challenge() -> None:
    store = SessionStore()
    store.put(_session(challenge="c-1"))
    store.put(_session(challenge="c-2"))

    assert store.consume("42", "c-1") is None
    assert store.get("42").challenge == "c-2"


def test_expired_session_is_absent() -> None:
    store = SessionStore(ttl_seconds=60)
    store.put(_session(created_at=time.time() - 61))

    assert store.get("42") is None
    expired = store.pop_expired("42")
    assert expired is not None
    assert len(store) == 0


def test_pop_expired_leaves_live_sessions() -> None:
    store = SessionStore(ttl_seconds=60)
    store.put(_session())

    assert store.pop_expired("42") is None
    assert store.get("42") is not None


def test_record_failure_counts_and_closes() -> None:
    store = SessionStore()
    store.put(_session())

    updated, closed = store.record_failure("42", "c-1", max_attempts=2)
    assert updated.failed_attempts == 1
    assert closed is False
    assert store.get("42").failed_attempts == 1

    updated, closed = store.record_failure("42", "c-1", max_attempts=2)
    assert updated.failed_attempts == 2
    assert closed is True
    assert store.get("42") is None


def test_record_failure_without_session() -> None:
    store = SessionStore()

    assert store.record_failure("42", "c-1", max_attempts=3) == (None, False)
