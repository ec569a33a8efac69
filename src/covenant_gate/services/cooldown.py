"""Per-user cooldown on verification attempts."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Final

from covenant_gate.core.settings import settings

DEFAULT_COOLDOWN_SECONDS: Final[int] = 300


@dataclass(frozen=True)
class CooldownDecision:
    """Outcome of a cooldown check."""

    allowed: bool
    remaining_seconds: int = 0


class CooldownGate:
    """Tracks the last verification attempt of every user.

    Records are never evicted; the map lives as long as the process. A record
    is written on every allowed attempt, whatever the attempt's outcome.
    """

    def __init__(self, window_seconds: int = DEFAULT_COOLDOWN_SECONDS) -> None:
        self._window = max(0, int(window_seconds))
        self._last_attempt: dict[str, float] = {}
        self._lock = Lock()

    @property
    def window_seconds(self) -> int:
        return self._window

    def check_and_record(self, user_id: str, now: float | None = None) -> CooldownDecision:
        """Atomically test the cooldown and, if open, start a new window.

        Args:
            user_id: Chat platform user id.
            now: Current time in epoch seconds; defaults to ``time.time()``.

        Returns:
            ``allowed=False`` with the whole seconds left (rounded up) while the
            window is active, in which case nothing is written. Otherwise the
            attempt time is stored and ``allowed=True`` is returned.
        """
        current = time.time() if now is None else now
        with self._lock:
            last = self._last_attempt.get(user_id)
            if last is not None:
                elapsed = current - last
                if elapsed < self._window:
                    return CooldownDecision(
                        allowed=False,
                        remaining_seconds=max(1, math.ceil(self._window - elapsed)),
                    )
            self._last_attempt[user_id] = current
        return CooldownDecision(allowed=True)

    def last_attempt(self, user_id: str) -> float | None:
        with self._lock:
            return self._last_attempt.get(user_id)


def get_cooldown_gate() -> CooldownGate:
    """Return a cooldown gate using the configured window."""
    return CooldownGate(settings.verify_cooldown_seconds)
