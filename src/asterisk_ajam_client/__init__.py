"""Async client polling PBX status through the Asterisk manager HTTP bridge."""

from __future__ import annotations

from .client import AsteriskClientDependencies, AsteriskManagerClient
from .config import (
    Credentials,
    HttpClientConfig,
    ManagerEndpoint,
    ManagerSettings,
    PollerConfig,
)
from .decoders import ResponseDecoder, parse_extension
from .errors import (
    AsteriskClientError,
    AuthenticationError,
    DecodeError,
    ProtocolError,
    TransportError,
)
from .models import (
    ManagerTask,
    ParkedCall,
    QueueCaller,
    QueueMember,
    QueueStats,
    QueueStatus,
    QueueSummary,
    Snapshot,
    Transport,
)
from .session import SessionManager, SessionState
from .snapshot import SnapshotStore
from .tasks import TaskQueue

__all__ = [
    "AsteriskClientDependencies",
    "AsteriskClientError",
    "AsteriskManagerClient",
    "AuthenticationError",
    "Credentials",
    "DecodeError",
    "HttpClientConfig",
    "ManagerEndpoint",
    "ManagerSettings",
    "ManagerTask",
    "ParkedCall",
    "PollerConfig",
    "ProtocolError",
    "QueueCaller",
    "QueueMember",
    "QueueStats",
    "QueueStatus",
    "QueueSummary",
    "ResponseDecoder",
    "SessionManager",
    "SessionState",
    "Snapshot",
    "SnapshotStore",
    "TaskQueue",
    "Transport",
    "TransportError",
    "parse_extension",
]
