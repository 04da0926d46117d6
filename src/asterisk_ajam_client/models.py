"""Typed data models for manager tasks and the polled PBX snapshot."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

Channel = Mapping[str, str]


def _empty_parameters() -> Mapping[str, str]:
    """Return an immutable empty mapping for default task parameters."""

    return MappingProxyType({})


class Transport(str, Enum):
    """Response encoding requested from the manager bridge."""

    STRUCTURED = "structured"
    RAW = "raw"

    @property
    def path(self) -> str:
        """Return the bridge route serving this transport."""

        return "mxml" if self is Transport.STRUCTURED else "rawman"


@dataclass(slots=True)
class ManagerTask:
    """One pending or in-flight manager action."""

    action: str
    parameters: Mapping[str, str] = field(default_factory=_empty_parameters)
    transport: Transport = Transport.STRUCTURED
    attempts: int = 0
    enqueued_at: float = 0.0
    started_at: float | None = None

    def age(self, now: float) -> float:
        """Return seconds since the latest attempt started, or 0 if never started."""

        if self.started_at is None:
            return 0.0
        return now - self.started_at


@dataclass(frozen=True, slots=True)
class ParkedCall:
    """A call waiting in a parking lot slot."""

    slot: str
    channel: str | None = None
    timeout: str | None = None
    wait: str | None = None
    caller_number: str | None = None
    caller_name: str | None = None
    connected_number: str | None = None
    connected_name: str | None = None


@dataclass(frozen=True, slots=True)
class QueueSummary:
    """Aggregate counters reported by ``QueueSummary`` for one queue."""

    number: str
    logged_in: str | None = None
    available: str | None = None
    callers: str | None = None
    hold_time: str | None = None
    talk_time: str | None = None
    longest_hold_time: str | None = None


@dataclass(frozen=True, slots=True)
class QueueMember:
    """An agent interface attached to a call queue."""

    name: str
    location: str | None = None
    state_interface: str | None = None
    membership: str | None = None
    penalty: str | None = None
    calls_taken: str | None = None
    last_call: str | None = None
    extension: int = 0
    status: str | None = None
    paused: bool = False

    @property
    def is_available(self) -> bool:
        """Return ``True`` when the member can take a call right now."""

        return not self.paused and self.status == "Not in Use"

    @property
    def is_busy(self) -> bool:
        """Return ``True`` when the member is logged in and on a call."""

        return not self.paused and self.status in ("In Use", "Busy")


@dataclass(frozen=True, slots=True)
class QueueCaller:
    """A caller waiting in a queue."""

    position: str | None = None
    channel: str | None = None
    caller_number: str | None = None
    caller_name: str | None = None
    wait: str | None = None


@dataclass(frozen=True, slots=True)
class QueueStats:
    """Member availability counters derived after decoding a queue."""

    total: int = 0
    available: int = 0
    busy: int = 0
    offline: int = 0
    calls: str | None = None


@dataclass(frozen=True, slots=True)
class QueueStatus:
    """Full status of one call queue, including members and waiting callers."""

    number: str
    name: str = "Queue"
    max: str | None = None
    strategy: str | None = None
    calls: str | None = None
    hold_time: str | None = None
    talk_time: str | None = None
    completed: str | None = None
    abandoned: str | None = None
    service_level: str | None = None
    service_level_perf: str | None = None
    weight: str | None = None
    members: Sequence[QueueMember] = ()
    callers: Sequence[QueueCaller] = ()
    stats: QueueStats = field(default_factory=QueueStats)
    ready: bool = False
    full: bool = True


def _empty_channels() -> Sequence[Channel]:
    return ()


def _empty_queue_status() -> Mapping[str, QueueStatus]:
    return MappingProxyType({})


def _empty_queue_summary() -> Mapping[str, QueueSummary]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Immutable view of the latest known PBX state."""

    channels: Sequence[Channel] = field(default_factory=_empty_channels)
    parked: Sequence[ParkedCall] = ()
    queue_status: Mapping[str, QueueStatus] = field(default_factory=_empty_queue_status)
    queue_summary: Mapping[str, QueueSummary] = field(default_factory=_empty_queue_summary)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable representation keyed like the proxy endpoints."""

        return {
            "channels": [dict(channel) for channel in self.channels],
            "parked": [asdict(call) for call in self.parked],
            "queueStatus": {key: asdict(queue) for key, queue in self.queue_status.items()},
            "queueSummary": {key: asdict(entry) for key, entry in self.queue_summary.items()},
        }
