"""Telemetry hook interfaces for structured request diagnostics and metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class TelemetrySignal:
    """Common base for every signal emitted by the client."""

    emitted_at: datetime = field(init=False)

    def __post_init__(self) -> None:
        """Record the UTC emission time."""
        object.__setattr__(self, "emitted_at", datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class TelemetryEvent(TelemetrySignal):
    """A one-off occurrence such as a failed or abandoned request."""


@dataclass(frozen=True, slots=True)
class TelemetryMetric(TelemetrySignal):
    """A periodic measurement sampled by the poller."""


@dataclass(frozen=True, slots=True)
class PollMetrics(TelemetryMetric):
    """Metric payload emitted on every poll tick."""

    queue_depth: int
    active_action: str | None = None
    stalled: bool = False


@dataclass(frozen=True, slots=True)
class RequestErrorEvent(TelemetryEvent):
    """Event emitted when a single request attempt fails at the transport level."""

    action: str
    attempt: int
    error_type: str
    message: str | None = None


@dataclass(frozen=True, slots=True)
class TaskAbandonedEvent(TelemetryEvent):
    """Event emitted when a task exhausts its attempts and is dropped."""

    action: str
    attempts: int


@dataclass(frozen=True, slots=True)
class ProtocolErrorEvent(TelemetryEvent):
    """Event emitted when a response is unreadable or reports failure."""

    action: str
    message: str | None = None


@dataclass(frozen=True, slots=True)
class DecodeErrorEvent(TelemetryEvent):
    """Event emitted when one manager event cannot be decoded."""

    action: str
    event_name: str
    message: str | None = None


class TelemetrySink(Protocol):
    """Receiver for the structured signals emitted by the client."""

    def record_event(self, event: TelemetryEvent) -> None:  # pragma: no cover - protocol
        """Accept one event."""
        ...

    def record_metric(self, metric: TelemetryMetric) -> None:  # pragma: no cover - protocol
        """Accept one metric sample."""
        ...


class NullTelemetrySink(TelemetrySink):
    """Sink used when no telemetry consumer is configured."""

    def record_event(self, event: TelemetryEvent) -> None:
        """Discard *event*."""

    def record_metric(self, metric: TelemetryMetric) -> None:
        """Discard *metric*."""
