"""Response decoders turning manager replies into snapshot state."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import replace
from typing import Final, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import DecodeError, ProtocolError
from .events import SUCCESS, extract_events, parse_document, response_status
from .models import (
    Channel,
    ManagerTask,
    ParkedCall,
    QueueCaller,
    QueueMember,
    QueueStats,
    QueueStatus,
    QueueSummary,
    Transport,
)
from .schemas import (
    ParkedCallEvent,
    QueueEntryEvent,
    QueueMemberEvent,
    QueueParamsEvent,
    QueueSummaryEvent,
)
from .session import SessionManager
from .snapshot import SnapshotStore
from .telemetry import DecodeErrorEvent, NullTelemetrySink, ProtocolErrorEvent, TelemetrySink

logger = logging.getLogger(__name__)

MEMBER_STATUS_TEXT: Final[Mapping[str, str]] = {
    "1": "Not in Use",
    "2": "In Use",
    "3": "Busy",
    "4": "Unknown",
    "5": "Unavailable",
    "6": "Ringing",
}

_SIP_EXTENSION: Final[re.Pattern[str]] = re.compile(r"SIP/(\d+)")

_EventModel = TypeVar("_EventModel", bound=BaseModel)


def parse_extension(state_interface: str | None) -> int:
    """Return the numeric extension embedded as ``SIP/<digits>`` in *state_interface*.

    Returns 0 when the interface is missing or does not contain the pattern.
    """
    if not state_interface:
        return 0
    match = _SIP_EXTENSION.search(state_interface)
    if match is None:
        return 0
    return int(match.group(1))


def member_status_text(code: str | None) -> str | None:
    """Map a numeric device state *code* to its display text."""
    if code is None:
        return None
    return MEMBER_STATUS_TEXT.get(code)


def _validated(
    schema: type[_EventModel],
    name: str,
    events: Iterable[Mapping[str, str]],
    on_error: Callable[[DecodeError], None],
) -> Iterator[_EventModel]:
    for attributes in events:
        try:
            yield schema.model_validate(attributes)
        except ValidationError as exc:
            on_error(DecodeError(name, str(exc)))


def _raise(error: DecodeError) -> None:
    raise error


def decode_channels(document: ET.Element) -> list[Channel]:
    """Return every ``CoreShowChannel`` attribute mapping verbatim."""
    return list(extract_events(document, "CoreShowChannel"))


def decode_parked_calls(
    document: ET.Element, on_error: Callable[[DecodeError], None] = _raise
) -> list[ParkedCall]:
    """Return one :class:`ParkedCall` per ``ParkedCall`` event."""
    return [
        ParkedCall(
            slot=event.exten,
            channel=event.channel,
            timeout=event.timeout,
            wait=event.duration,
            caller_number=event.calleridnum,
            caller_name=event.calleridname,
            connected_number=event.connectedlinenum,
            connected_name=event.connectedlinename,
        )
        for event in _validated(
            ParkedCallEvent, "ParkedCall", extract_events(document, "ParkedCall"), on_error
        )
    ]


def decode_queue_summary(
    document: ET.Element, on_error: Callable[[DecodeError], None] = _raise
) -> dict[str, QueueSummary]:
    """Return ``QueueSummary`` events keyed by queue identifier."""
    summaries: dict[str, QueueSummary] = {}
    events = extract_events(document, "QueueSummary")
    for event in _validated(QueueSummaryEvent, "QueueSummary", events, on_error):
        summaries[event.queue] = QueueSummary(
            number=event.queue,
            logged_in=event.loggedin,
            available=event.available,
            callers=event.callers,
            hold_time=event.holdtime,
            talk_time=event.talktime,
            longest_hold_time=event.longestholdtime,
        )
    return summaries


def _member_from_event(event: QueueMemberEvent) -> QueueMember:
    return QueueMember(
        name=event.name,
        location=event.location,
        state_interface=event.stateinterface,
        membership=event.membership,
        penalty=event.penalty,
        calls_taken=event.callstaken,
        last_call=event.lastcall,
        extension=parse_extension(event.stateinterface),
        status=member_status_text(event.status),
        paused=event.paused == "1",
    )


def compute_queue_stats(queue: QueueStatus) -> QueueStatus:
    """Return *queue* with derived stats, readiness flags and name-sorted members."""
    available = sum(1 for member in queue.members if member.is_available)
    busy = sum(1 for member in queue.members if member.is_busy)
    total = len(queue.members)
    stats = QueueStats(
        total=total,
        available=available,
        busy=busy,
        offline=total - available - busy,
        calls=queue.calls,
    )
    return replace(
        queue,
        members=tuple(sorted(queue.members, key=lambda member: member.name)),
        callers=tuple(queue.callers),
        stats=stats,
        ready=(available + busy) > 0,
        full=available == 0,
    )


def decode_queue_status(
    document: ET.Element, on_error: Callable[[DecodeError], None] = _raise
) -> dict[str, QueueStatus]:
    """Decode ``QueueParams``, ``QueueMember`` and ``QueueEntry`` events per queue."""
    queues: dict[str, QueueStatus] = {}
    members: dict[str, list[QueueMember]] = {}
    callers: dict[str, list[QueueCaller]] = {}

    params = extract_events(document, "QueueParams")
    for event in _validated(QueueParamsEvent, "QueueParams", params, on_error):
        queues[event.queue] = QueueStatus(
            number=event.queue,
            max=event.max,
            strategy=event.strategy,
            calls=event.calls,
            hold_time=event.holdtime,
            talk_time=event.talktime,
            completed=event.completed,
            abandoned=event.abandoned,
            service_level=event.servicelevel,
            service_level_perf=event.servicelevelperf,
            weight=event.weight,
        )
        members[event.queue] = []
        callers[event.queue] = []

    member_events = extract_events(document, "QueueMember")
    for member_event in _validated(QueueMemberEvent, "QueueMember", member_events, on_error):
        if member_event.queue not in members:
            on_error(DecodeError("QueueMember", f"unknown queue {member_event.queue!r}"))
            continue
        members[member_event.queue].append(_member_from_event(member_event))

    entry_events = extract_events(document, "QueueEntry")
    for entry in _validated(QueueEntryEvent, "QueueEntry", entry_events, on_error):
        if entry.queue not in callers:
            on_error(DecodeError("QueueEntry", f"unknown queue {entry.queue!r}"))
            continue
        callers[entry.queue].append(
            QueueCaller(
                position=entry.position,
                channel=entry.channel,
                caller_number=entry.calleridnum,
                caller_name=entry.calleridname,
                wait=entry.wait,
            )
        )

    return {
        number: compute_queue_stats(
            replace(queue, members=members[number], callers=callers[number])
        )
        for number, queue in queues.items()
    }


class ResponseDecoder:
    """Routes manager response bodies to per-action decoders and updates the store."""

    def __init__(
        self,
        store: SnapshotStore,
        session: SessionManager,
        *,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        """Bind the decoder to the snapshot *store* and the *session* it renews."""
        self._store = store
        self._session = session
        self._telemetry = telemetry or NullTelemetrySink()
        self._structured: dict[str, Callable[[ET.Element, ManagerTask], None]] = {
            "Login": self._login,
            "CoreShowChannels": self._core_show_channels,
            "QueueSummary": self._queue_summary,
            "QueueStatus": self._queue_status,
            "ParkedCalls": self._parked_calls,
            "Originate": self._acknowledge,
        }
        self._raw: dict[str, Callable[[list[str], ManagerTask], None]] = {}

    def handle(self, task: ManagerTask, body: str) -> bool:
        """Decode *body* for *task*; return ``True`` when the manager reported success."""
        if task.transport is Transport.RAW:
            return self.handle_raw(task, body)
        return self.handle_structured(task, body)

    def handle_structured(self, task: ManagerTask, body: str) -> bool:
        """Decode an ``mxml`` response, renewing the session on success."""
        try:
            document = parse_document(body)
            status = response_status(document)
            if status != SUCCESS:
                raise ProtocolError(f"{task.action} returned status {status!r}")
        except ProtocolError as exc:
            logger.warning("AMI XML request %s failed: %s", task.action, exc)
            logger.debug("Rejected response body: %s", body)
            self._telemetry.record_event(ProtocolErrorEvent(action=task.action, message=str(exc)))
            return False

        self._session.renew()
        decoder = self._structured.get(task.action)
        if decoder is None:
            logger.warning("Action %s not supported by the XML response decoder", task.action)
            return True
        decoder(document, task)
        logger.info("Received success response from [%s] request", task.action)
        return True

    def handle_raw(self, task: ManagerTask, body: str) -> bool:
        """Decode a ``rawman`` response; failures are logged and discarded."""
        lines = body.split("\n")
        if "Error" in lines[0]:
            logger.warning("AMI raw request %s failed: %s", task.action, lines[0].strip())
            self._telemetry.record_event(
                ProtocolErrorEvent(action=task.action, message=lines[0].strip())
            )
            return False
        self._session.renew()
        decoder = self._raw.get(task.action)
        if decoder is None:
            logger.warning("Action %s not supported by the raw response decoder", task.action)
            return True
        decoder(lines, task)
        return True

    def _report(self, task: ManagerTask) -> Callable[[DecodeError], None]:
        def _on_error(error: DecodeError) -> None:
            logger.warning("Skipping malformed event in %s: %s", task.action, error)
            self._telemetry.record_event(
                DecodeErrorEvent(
                    action=task.action, event_name=error.event_name, message=str(error)
                )
            )

        return _on_error

    def _login(self, document: ET.Element, task: ManagerTask) -> None:
        self._session.renew(force=True)
        logger.info("Successfully logged in to the manager interface")

    def _acknowledge(self, document: ET.Element, task: ManagerTask) -> None:
        logger.info("Manager accepted %s with %s", task.action, dict(task.parameters))

    def _core_show_channels(self, document: ET.Element, task: ManagerTask) -> None:
        self._store.replace_channels(decode_channels(document))

    def _parked_calls(self, document: ET.Element, task: ManagerTask) -> None:
        self._store.replace_parked(decode_parked_calls(document, self._report(task)))

    def _queue_summary(self, document: ET.Element, task: ManagerTask) -> None:
        self._store.replace_queue_summary(decode_queue_summary(document, self._report(task)))

    def _queue_status(self, document: ET.Element, task: ManagerTask) -> None:
        self._store.replace_queue_status(decode_queue_status(document, self._report(task)))
