"""Exception hierarchy for the Asterisk AJAM client library."""

from __future__ import annotations


class AsteriskClientError(Exception):
    """Base exception for all Asterisk AJAM client errors."""


class TransportError(AsteriskClientError):
    """Raised when an HTTP request to the manager bridge cannot be completed."""


class ProtocolError(AsteriskClientError):
    """Raised when a manager response is unreadable or does not report success."""


class AuthenticationError(AsteriskClientError):
    """Raised when the manager login is rejected or cannot be completed."""


class DecodeError(AsteriskClientError):
    """Raised when a single manager event cannot be converted into a typed record."""

    def __init__(self, event_name: str, message: str) -> None:
        """Record the *event_name* that failed alongside a human readable *message*."""
        super().__init__(f"{event_name}: {message}")
        self.event_name = event_name
