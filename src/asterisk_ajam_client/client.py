"""Public async client facade polling an Asterisk manager bridge."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from .config import (
    Credentials,
    HttpClientConfig,
    ManagerEndpoint,
    ManagerSettings,
    PollerConfig,
)
from .decoders import ResponseDecoder
from .dispatcher import RequestDispatcher
from .errors import AuthenticationError
from .http import AsyncHttpClientProtocol, ManagerHttpClient
from .models import ManagerTask, Snapshot, Transport
from .poller import StatusPoller
from .session import SessionManager, SessionState
from .snapshot import SnapshotStore
from .tasks import TaskQueue
from .telemetry import NullTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AsteriskClientDependencies:
    """Optional dependency overrides for :class:`AsteriskManagerClient`."""

    http_client: AsyncHttpClientProtocol | None = None
    http_config: HttpClientConfig | None = None
    poller_config: PollerConfig | None = None
    telemetry: TelemetrySink | None = None
    clock: Callable[[], float] | None = None


class AsteriskManagerClient:
    """Keeps a manager session alive, polls PBX status and serves the latest snapshot.

    Requests flow through a deduplicating :class:`TaskQueue` drained by a single
    worker coroutine, so exactly one request is on the wire at any time. Before
    each task the worker consults the :class:`SessionManager` and logs in first
    when the session has lapsed.
    """

    def __init__(self, *, dependencies: AsteriskClientDependencies | None = None) -> None:
        """Wire optional dependency overrides and prepare internal state."""
        deps = dependencies or AsteriskClientDependencies()
        self._telemetry = deps.telemetry or NullTelemetrySink()
        self._http_config = deps.http_config or HttpClientConfig()
        self._poller_config = deps.poller_config or PollerConfig()
        self._clock = deps.clock or time.monotonic
        self._http_client = deps.http_client
        self._session = SessionManager(self._poller_config.session_window, clock=self._clock)
        self._store = SnapshotStore()
        self._queue = TaskQueue(clock=self._clock)
        self._decoder = ResponseDecoder(self._store, self._session, telemetry=self._telemetry)
        self._credentials: Credentials | None = None
        self._endpoint: ManagerEndpoint | None = None
        self._dispatcher: RequestDispatcher | None = None
        self._poller: StatusPoller | None = None
        self._worker: asyncio.Task[None] | None = None
        logger.debug("AsteriskManagerClient initialised")

    @property
    def running(self) -> bool:
        """Return ``True`` while the status poller is active."""
        return self._poller is not None and self._poller.running

    @property
    def session_state(self) -> SessionState:
        """Return the current manager session state."""
        return self._session.state

    @property
    def pending_actions(self) -> tuple[str, ...]:
        """Return queued action names in dispatch order."""
        return self._queue.pending_actions

    @property
    def active_task(self) -> ManagerTask | None:
        """Return the task whose request is currently in flight, if any."""
        return None if self._dispatcher is None else self._dispatcher.active

    def snapshot(self) -> Snapshot:
        """Return the latest immutable PBX snapshot."""
        return self._store.read()

    async def start(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        poll_interval: float | None = None,
    ) -> None:
        """Connect to the bridge at *host*:*port* and begin polling.

        Calling ``start`` while already running is a no-op. After :meth:`stop`,
        ``start`` resumes polling against the bridge configured first.
        """
        if self.running:
            return
        if self._dispatcher is None:
            endpoint = ManagerEndpoint(host=host, port=port)
            self._endpoint = endpoint
            self._credentials = Credentials(username=username, password=password)
            if self._http_client is None:
                self._http_client = ManagerHttpClient(endpoint, self._http_config)
            self._dispatcher = RequestDispatcher(
                self._http_client,
                max_attempts=self._poller_config.max_attempts,
                telemetry=self._telemetry,
                clock=self._clock,
            )
            logger.info("Configured manager bridge at %s", endpoint.base_url)
        elif self._endpoint is not None and (host, port) != (
            self._endpoint.host,
            self._endpoint.port,
        ):
            logger.warning(
                "Ignoring %s:%s on restart; still bound to %s",
                host,
                port,
                self._endpoint.base_url,
            )
        interval = poll_interval or self._poller_config.poll_interval
        self._poller = StatusPoller(
            self._dispatcher,
            self.send_action,
            interval=interval,
            stall_threshold=self._poller_config.stall_threshold,
            queue_depth=lambda: len(self._queue),
            telemetry=self._telemetry,
            clock=self._clock,
        )
        self._poller.start()
        logger.info("AsteriskManagerClient started")

    async def start_with(self, settings: ManagerSettings) -> None:
        """Start using resolved :class:`ManagerSettings`."""
        await self.start(
            settings.endpoint.host,
            settings.endpoint.port,
            settings.credentials.username,
            settings.credentials.password,
            settings.poll_interval,
        )

    async def stop(self) -> None:
        """Halt the status poller; queued work and the request in flight still complete."""
        if self._poller is None:
            return
        poller, self._poller = self._poller, None
        await poller.stop()
        logger.info("AsteriskManagerClient stopped")

    async def aclose(self) -> None:
        """Stop polling, cancel the worker and close the HTTP client."""
        await self.stop()
        worker, self._worker = self._worker, None
        if worker is not None and not worker.done():
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        if self._http_client is not None:
            await self._http_client.close()
        logger.info("AsteriskManagerClient shutdown complete")

    def send_action(
        self,
        action: str,
        parameters: Mapping[str, str] | None = None,
        transport: Transport = Transport.STRUCTURED,
    ) -> bool:
        """Queue a manager *action*; return ``False`` if one with that name is pending.

        Either way the worker is started if it is idle.
        """
        added = self._queue.enqueue(action, parameters, transport)
        self._ensure_worker()
        return added

    def originate_call(
        self,
        number: str,
        extension: str | int,
        *,
        context: str = "default",
        account: str | None = None,
        timeout_ms: int = 30000,
    ) -> bool:
        """Ask the PBX to ring ``SIP/<extension>`` and connect it to *number*."""
        params = {
            "Channel": f"SIP/{extension}",
            "Context": context,
            "Exten": number,
            "Priority": "1",
            "Timeout": str(timeout_ms),
        }
        if account:
            params["Account"] = account
        added = self.send_action("Originate", params)
        logger.info("Requested originate from %s to %s", extension, number)
        return added

    def _ensure_worker(self) -> None:
        if self._dispatcher is None:
            return
        if not self._queue.claim():
            return
        self._worker = asyncio.create_task(self._process_queue(), name="asterisk-task-worker")

    async def _process_queue(self) -> None:
        try:
            while True:
                if self._session.is_expired():
                    try:
                        await self._login()
                    except AuthenticationError as exc:
                        logger.warning(
                            "%s; holding %d queued task(s) until the next request",
                            exc,
                            len(self._queue),
                        )
                        return
                    continue
                task = self._queue.dequeue_next()
                if task is None:
                    logger.debug("All tasks completed")
                    return
                await self._execute(task)
        finally:
            self._queue.release()

    async def _login(self) -> None:
        assert self._dispatcher is not None
        assert self._credentials is not None
        task = ManagerTask(
            action="Login",
            parameters={
                "Username": self._credentials.username,
                "Secret": self._credentials.password,
            },
            enqueued_at=self._clock(),
        )
        logger.info("Manager session expired; logging in as %s", self._credentials.username)
        await self._execute(task)
        if self._session.is_expired():
            raise AuthenticationError(f"Login as {self._credentials.username} failed")

    async def _execute(self, task: ManagerTask) -> None:
        assert self._dispatcher is not None
        try:
            body = await self._dispatcher.dispatch(task)
            if body is None:
                return
            self._decoder.handle(task, body)
        except Exception:  # pragma: no cover - defensive path
            logger.exception("Unexpected failure while processing %s", task.action)
