"""Fixed-interval status poller with stalled-request detection."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Final

from .dispatcher import RequestDispatcher
from .telemetry import NullTelemetrySink, PollMetrics, TelemetrySink

logger = logging.getLogger(__name__)

STATUS_ACTIONS: Final[tuple[str, ...]] = (
    "CoreShowChannels",
    "QueueSummary",
    "QueueStatus",
    "ParkedCalls",
)


class StatusPoller:
    """Enqueues the status refresh actions on every tick.

    Before enqueueing, a tick checks whether the request in flight has been
    running longer than ``stall_threshold`` and interrupts it; the dispatcher
    then resends or abandons it according to the task's attempt count.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        enqueue: Callable[[str], object],
        *,
        interval: float = 2.0,
        stall_threshold: float = 5.0,
        queue_depth: Callable[[], int] | None = None,
        telemetry: TelemetrySink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a poller feeding *enqueue* and watching *dispatcher*."""
        self._dispatcher = dispatcher
        self._enqueue = enqueue
        self._interval = interval
        self._stall_threshold = stall_threshold
        self._queue_depth = queue_depth or (lambda: 0)
        self._telemetry = telemetry or NullTelemetrySink()
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return ``True`` while the timer task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking immediately and then every ``interval`` seconds."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="asterisk-status-poller")
        logger.info("Status poller started with %.1fs interval", self._interval)

    async def stop(self) -> None:
        """Stop the timer; the request in flight is left to finish on its own."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Status poller stopped")

    def tick(self) -> None:
        """Run one poll cycle."""
        stalled = False
        active = self._dispatcher.active
        if active is not None and active.age(self._clock()) > self._stall_threshold:
            logger.warning(
                "Request %s stalled after %.1fs (attempt %d)",
                active.action,
                active.age(self._clock()),
                active.attempts,
            )
            stalled = self._dispatcher.interrupt()
        for action in STATUS_ACTIONS:
            self._enqueue(action)
        self._telemetry.record_metric(
            PollMetrics(
                queue_depth=self._queue_depth(),
                active_action=None if active is None else active.action,
                stalled=stalled,
            )
        )

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:  # pragma: no cover - defensive path
                logger.exception("Unexpected failure during status poll tick")
            await asyncio.sleep(self._interval)
