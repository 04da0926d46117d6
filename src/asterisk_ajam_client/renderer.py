"""Pure Rich renderer for the status dashboard.

Converts a :class:`Snapshot` into Rich renderables: one table for queues, one
for parked calls and a channel count header.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ParkedCall, QueueStatus, Snapshot


def render_snapshot(snapshot: Snapshot, *, title: str = "Asterisk") -> Panel:
    """Return a panel summarising *snapshot*."""
    header = Text.assemble(
        ("Channels ", "bold"),
        (str(len(snapshot.channels)), "cyan"),
        ("  Parked ", "bold"),
        (str(len(snapshot.parked)), "cyan"),
        ("  Queues ", "bold"),
        (str(len(snapshot.queue_status)), "cyan"),
    )
    body = Group(
        header,
        _render_queues(snapshot.queue_status.values()),
        _render_parked(snapshot.parked),
    )
    return Panel(body, title=title, border_style="cyan")


def _render_queues(queues: Iterable[QueueStatus]) -> Table:
    table = Table(title="Queues", expand=True, show_edge=False)
    table.add_column("Queue", no_wrap=True)
    table.add_column("Strategy")
    table.add_column("Calls", justify="right")
    table.add_column("Avail", justify="right")
    table.add_column("Busy", justify="right")
    table.add_column("Offline", justify="right")
    table.add_column("State", no_wrap=True)
    for queue in sorted(queues, key=lambda item: item.number):
        table.add_row(
            queue.number,
            queue.strategy or "-",
            queue.calls or "0",
            str(queue.stats.available),
            str(queue.stats.busy),
            str(queue.stats.offline),
            _queue_state(queue),
        )
    return table


def _queue_state(queue: QueueStatus) -> Text:
    if not queue.ready:
        return Text("closed", style="bold red")
    if queue.full:
        return Text("full", style="yellow")
    return Text("open", style="green")


def _render_parked(parked: Iterable[ParkedCall]) -> Table:
    table = Table(title="Parked calls", expand=True, show_edge=False)
    table.add_column("Slot", no_wrap=True)
    table.add_column("Caller")
    table.add_column("Parked by")
    table.add_column("Wait", justify="right")
    for call in parked:
        table.add_row(
            call.slot,
            call.caller_name or call.caller_number or "-",
            call.connected_name or call.connected_number or "-",
            f"{call.wait}s" if call.wait else "-",
        )
    return table
