"""In-process store of pending verification sessions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from threading import Lock

from covenant_gate.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationSession:
    """A pending challenge bound to one user, wallet and private channel."""

    user_id: str
    wallet: str
    challenge: str
    channel_id: str
    created_at: float = field(default_factory=time.time)
    failed_attempts: int = 0

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds


class SessionStore:
    """Holds at most one live session per user id.

    Every public method runs under a single lock so a read-then-write on a key
    can never interleave with another operation. Sessions older than the TTL
    are treated as absent and pruned when touched.
    """

    def __init__(self, ttl_seconds: float = 900.0) -> None:
        self._ttl = float(ttl_seconds)
        self._sessions: dict[str, VerificationSession] = {}
        self._lock = Lock()

    def _live(self, user_id: str, now: float) -> VerificationSession | None:
        session = self._sessions.get(user_id)
        if session is not None and session.is_expired(now, self._ttl):
            logger.info("Verification session for user %s expired", user_id)
            return None
        return session

    def put(self, session: VerificationSession) -> VerificationSession | None:
        """Store `session`, returning whatever session it replaced (live or expired).

        Replacement is explicit: callers receive the old session so they can
        clean up its channel.
        """
        with self._lock:
            previous = self._sessions.get(session.user_id)
            self._sessions[session.user_id] = session
        if previous is not None:
            logger.warning(
                "Replaced existing verification session for user %s (channel %s)",
                session.user_id,
                previous.channel_id,
            )
        return previous

    def get(self, user_id: str, now: float | None = None) -> VerificationSession | None:
        """Return the live session for `user_id`, or None."""
        current = time.time() if now is None else now
        with self._lock:
            return self._live(user_id, current)

    def pop_expired(self, user_id: str, now: float | None = None) -> VerificationSession | None:
        """Remove and return the session for `user_id` only if it has expired."""
        current = time.time() if now is None else now
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or not session.is_expired(current, self._ttl):
                return None
            del self._sessions[user_id]
            return session

    def consume(self, user_id: str, challenge: str) -> VerificationSession | None:
        """Delete and return the session if it still carries `challenge`.

        Returns None when the session is gone or was superseded, so exactly one
        caller can ever consume a given session.
        """
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or session.challenge != challenge:
                return None
            del self._sessions[user_id]
            return session

    def record_failure(
        self, user_id: str, challenge: str, max_attempts: int
    ) -> tuple[VerificationSession | None, bool]:
        """Count a failed signature against the session carrying `challenge`.

        Returns:
            ``(session, closed)``: the updated session (None if it was already
            gone) and whether the attempt budget is now exhausted, in which case
            the session has been deleted.
        """
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or session.challenge != challenge:
                return None, False
            updated = replace(session, failed_attempts=session.failed_attempts + 1)
            if updated.failed_attempts >= max_attempts:
                del self._sessions[user_id]
                return updated, True
            self._sessions[user_id] = updated
            return updated, False

    def discard(self, user_id: str) -> VerificationSession | None:
        with self._lock:
            return self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def get_session_store() -> SessionStore:
    """Return a session store using the configured TTL."""
    return SessionStore(settings.session_ttl_seconds)
