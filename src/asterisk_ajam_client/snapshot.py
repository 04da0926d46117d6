"""Owned store for the polled PBX snapshot."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from types import MappingProxyType

from .models import Channel, ParkedCall, QueueStatus, QueueSummary, Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds the latest snapshot and swaps whole regions on every successful decode.

    Each replacement builds a fresh immutable :class:`Snapshot`, so a reader that
    called :meth:`read` never observes a region half old and half new.
    """

    def __init__(self) -> None:
        """Start with an empty snapshot."""
        self._snapshot = Snapshot()

    def read(self) -> Snapshot:
        """Return the current immutable snapshot."""
        return self._snapshot

    def replace_channels(self, channels: Iterable[Channel]) -> None:
        """Replace the ``channels`` region."""
        frozen = tuple(MappingProxyType(dict(channel)) for channel in channels)
        self._snapshot = replace(self._snapshot, channels=frozen)
        logger.info("Updated %d channel details", len(frozen))

    def replace_parked(self, parked: Iterable[ParkedCall]) -> None:
        """Replace the ``parked`` region."""
        frozen = tuple(parked)
        self._snapshot = replace(self._snapshot, parked=frozen)
        logger.info("Updated %d parked calls", len(frozen))

    def replace_queue_summary(self, summaries: Mapping[str, QueueSummary]) -> None:
        """Replace the ``queue_summary`` region."""
        frozen = MappingProxyType(dict(summaries))
        self._snapshot = replace(self._snapshot, queue_summary=frozen)
        logger.info("Updated %d queue summaries", len(frozen))

    def replace_queue_status(self, statuses: Mapping[str, QueueStatus]) -> None:
        """Replace the ``queue_status`` region."""
        frozen = MappingProxyType(dict(statuses))
        self._snapshot = replace(self._snapshot, queue_status=frozen)
        logger.info("Updated %d queue statuses", len(frozen))
