"""Single-flight suppression of authentication-failure notifications."""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

AuthFailureListener = Callable[[int], None]
Clock = Callable[[], float]

UNAUTHORIZED = 401


class AuthState(str, Enum):
    IDLE = "idle"
    SUPPRESSING = "suppressing"


class SessionGuard:
    """Rate-limit the "session expired" notification across concurrent requests.

    The first 401 seen while idle notifies every subscriber once and starts a
    cooldown window. 401s during the window are swallowed. When the window
    ends the guard is idle again, whatever arrived in the meantime; those
    events are not queued.

    The guard only notifies. Clearing the session or redirecting is the
    subscriber's decision.
    """

    def __init__(self, cooldown_ms: int = 1000, clock: Clock = time.monotonic) -> None:
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must be >= 0")
        self.cooldown_ms = cooldown_ms
        self._clock = clock
        self._state = AuthState.IDLE
        self._suppress_until = 0.0
        self._listeners: list[AuthFailureListener] = []

    @property
    def state(self) -> AuthState:
        self._expire()
        return self._state

    @property
    def suppress_until(self) -> float | None:
        """Clock reading at which suppression ends, or None while idle."""
        if self.state is AuthState.SUPPRESSING:
            return self._suppress_until
        return None

    def subscribe(self, listener: AuthFailureListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def observe(self, status: int | None) -> bool:
        """Feed one response status. Returns True if subscribers were notified.

        Runs to completion without awaiting, so the check and the state
        change cannot interleave with another response on the event loop.
        """
        if status != UNAUTHORIZED:
            return False

        if self.state is AuthState.SUPPRESSING:
            logger.debug("401 suppressed until %.3f", self._suppress_until)
            return False

        self._state = AuthState.SUPPRESSING
        self._suppress_until = self._clock() + self.cooldown_ms / 1000
        logger.warning("Authentication failure (401); notifying session layer")
        self._notify(status)
        return True

    def reset(self) -> None:
        self._state = AuthState.IDLE
        self._suppress_until = 0.0

    def _expire(self) -> None:
        if self._state is AuthState.SUPPRESSING and self._clock() >= self._suppress_until:
            self._state = AuthState.IDLE

    def _notify(self, status: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error("Auth failure listener failed: %s", e)
