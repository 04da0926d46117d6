"""Single-flight request dispatcher with bounded retries and stall interruption."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import httpx

from .errors import TransportError
from .http import AsyncHttpClientProtocol
from .models import ManagerTask
from .telemetry import NullTelemetrySink, RequestErrorEvent, TaskAbandonedEvent, TelemetrySink

logger = logging.getLogger(__name__)


class RequestDispatcher:
    """Sends one manager request at a time and retries transport failures.

    The request currently on the wire is exposed through :attr:`active` so the
    poller can spot a stalled call and :meth:`interrupt` it. An interrupted
    attempt counts as a transport failure against the task's ``attempts``.
    """

    def __init__(
        self,
        http_client: AsyncHttpClientProtocol,
        *,
        max_attempts: int = 3,
        telemetry: TelemetrySink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a dispatcher issuing requests through *http_client*."""
        self._http_client = http_client
        self._max_attempts = max_attempts
        self._telemetry = telemetry or NullTelemetrySink()
        self._clock = clock
        self._active: ManagerTask | None = None
        self._inflight: asyncio.Future[httpx.Response] | None = None

    @property
    def active(self) -> ManagerTask | None:
        """Return the task whose request is currently in flight."""
        return self._active

    def interrupt(self) -> bool:
        """Cancel the in-flight request; return ``False`` when nothing is on the wire."""
        if self._inflight is None or self._inflight.done():
            return False
        self._inflight.cancel()
        return True

    async def dispatch(self, task: ManagerTask) -> str | None:
        """Send *task* until it succeeds or runs out of attempts.

        Returns the response body, or ``None`` when the task was abandoned.
        """
        while True:
            try:
                return await self._attempt(task)
            except TransportError as exc:
                logger.warning(
                    "Unsuccessful %s %s request (attempt %d): %s",
                    task.action,
                    task.transport.value,
                    task.attempts,
                    exc,
                )
                self._telemetry.record_event(
                    RequestErrorEvent(
                        action=task.action,
                        attempt=task.attempts,
                        error_type=exc.__class__.__name__,
                        message=str(exc),
                    )
                )
                if task.attempts < self._max_attempts:
                    logger.warning("Resending task: %s", task.action)
                    continue
                logger.error("Abandoning %s after %d attempt(s)", task.action, task.attempts)
                self._telemetry.record_event(
                    TaskAbandonedEvent(action=task.action, attempts=task.attempts)
                )
                return None
            finally:
                self._active = None

    async def _attempt(self, task: ManagerTask) -> str:
        task.attempts += 1
        task.started_at = self._clock()
        self._active = task
        params = {"action": task.action, **task.parameters}
        logger.info(
            "Making %s request: /%s?action=%s",
            task.transport.value,
            task.transport.path,
            task.action,
        )
        inflight = asyncio.ensure_future(
            self._http_client.get(f"/{task.transport.path}", params=params)
        )
        self._inflight = inflight
        try:
            await asyncio.wait({inflight})
        except asyncio.CancelledError:
            inflight.cancel()
            raise
        finally:
            self._inflight = None
        if inflight.cancelled():
            raise TransportError(f"{task.action} request stalled and was interrupted")
        response = inflight.result()
        return response.text
