"""Sliding-window session validity tracking for the manager login."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Authentication state of the manager session."""

    VALID = "valid"
    EXPIRED = "expired"


class SessionManager:
    """Tracks when the manager session expires.

    The session starts expired. Every successful response slides the expiry
    forward by ``window`` seconds from the current time; a successful login
    does so unconditionally, while ordinary responses only renew a session that
    is still valid.
    """

    def __init__(
        self, window: float = 60.0, *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        """Create a manager granting *window* seconds per renewal, timed by *clock*."""
        self._window = window
        self._clock = clock
        self._expires_at = float("-inf")

    @property
    def expires_at(self) -> float:
        """Return the clock reading at which the session lapses."""
        return self._expires_at

    @property
    def state(self) -> SessionState:
        """Return the current :class:`SessionState`."""
        return SessionState.VALID if self._clock() < self._expires_at else SessionState.EXPIRED

    def is_expired(self) -> bool:
        """Return ``True`` when a login must precede the next request."""
        return self.state is SessionState.EXPIRED

    def renew(self, *, force: bool = False) -> bool:
        """Slide the expiry to ``now + window``; return ``True`` if it moved."""
        now = self._clock()
        if not force and now >= self._expires_at:
            return False
        self._expires_at = now + self._window
        return True

    def invalidate(self) -> None:
        """Mark the session expired so the next cycle logs in again."""
        self._expires_at = float("-inf")
        logger.debug("Manager session invalidated")
