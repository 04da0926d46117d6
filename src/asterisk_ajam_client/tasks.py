"""Deduplicating single-consumer task queue for manager actions."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Mapping

from .models import ManagerTask, Transport

logger = logging.getLogger(__name__)


class TaskQueue:
    """FIFO of pending manager actions keyed by action name.

    At most one pending task per action name is held. The queue also tracks
    whether a consumer is draining it so that only one dispatch loop runs.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        """Create an empty, idle queue."""
        self._pending: deque[ManagerTask] = deque()
        self._working = False
        self._clock = clock

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, action: object) -> bool:
        return any(task.action == action for task in self._pending)

    @property
    def working(self) -> bool:
        """Return ``True`` while a consumer owns the queue."""
        return self._working

    @property
    def pending_actions(self) -> tuple[str, ...]:
        """Return pending action names in dispatch order."""
        return tuple(task.action for task in self._pending)

    def enqueue(
        self,
        action: str,
        parameters: Mapping[str, str] | None = None,
        transport: Transport = Transport.STRUCTURED,
    ) -> bool:
        """Append a task for *action* unless one is already pending.

        Returns ``True`` when a task was appended.
        """
        if action in self:
            logger.debug("Dropping duplicate task for action %s", action)
            return False
        self._pending.append(
            ManagerTask(
                action=action,
                parameters=dict(parameters or {}),
                transport=transport,
                enqueued_at=self._clock(),
            )
        )
        return True

    def dequeue_next(self) -> ManagerTask | None:
        """Pop the oldest task, or mark the queue idle and return ``None``."""
        if not self._pending:
            self._working = False
            return None
        return self._pending.popleft()

    def claim(self) -> bool:
        """Mark the queue as being drained; return ``False`` if already claimed."""
        if self._working:
            return False
        self._working = True
        return True

    def release(self) -> None:
        """Mark the queue idle without removing pending tasks."""
        self._working = False
