"""Tests for event extraction and per-action response decoding."""

from __future__ import annotations

from xml.sax.saxutils import quoteattr

import pytest

from asterisk_ajam_client import (
    DecodeError,
    ManagerTask,
    ProtocolError,
    QueueMember,
    QueueStatus,
    ResponseDecoder,
    SessionManager,
    SnapshotStore,
    Transport,
    parse_extension,
)
from asterisk_ajam_client.decoders import compute_queue_stats, decode_queue_status
from asterisk_ajam_client.events import extract_events, parse_document, response_status
from asterisk_ajam_client.telemetry import DecodeErrorEvent, TelemetryEvent, TelemetryMetric

SUCCESS_HEADER = {"response": "Success", "message": "Queue status will follow"}


def mxml(*records: dict[str, str]) -> str:
    """Render *records* the way the mxml bridge wraps AMI packets."""
    parts = []
    for record in records:
        attrs = " ".join(f"{key}={quoteattr(value)}" for key, value in record.items())
        parts.append(f"<response type='object' id='unknown'><generic {attrs} /></response>")
    return "<ajax-response>" + "".join(parts) + "</ajax-response>"


class RecordingTelemetrySink:
    """Collects telemetry events for assertions."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def record_event(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def record_metric(self, metric: TelemetryMetric) -> None:
        return None


class FakeClock:
    def __init__(self, now: float = 500.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _member(name: str, status: str, *, paused: bool = False) -> QueueMember:
    return QueueMember(name=name, status=status, paused=paused)


def _decoder() -> tuple[ResponseDecoder, SnapshotStore, SessionManager, FakeClock]:
    clock = FakeClock()
    session = SessionManager(60.0, clock=clock)
    session.renew(force=True)
    store = SnapshotStore()
    return ResponseDecoder(store, session), store, session, clock


def test_parse_extension_reads_sip_digits() -> None:
    assert parse_extension("SIP/4821") == 4821
    assert parse_extension("Local/100@from-queue SIP/205") == 205


@pytest.mark.parametrize("value", ["garbage", "PJSIP/", "", None])
def test_parse_extension_defaults_to_zero(value: str | None) -> None:
    assert parse_extension(value) == 0


def test_extract_events_filters_by_name_and_drops_event_key() -> None:
    document = parse_document(
        mxml(
            SUCCESS_HEADER,
            {"event": "QueueParams", "queue": "600"},
            {"event": "QueueMember", "queue": "600", "name": "Alice"},
            {"event": "QueueParams", "queue": "700"},
        )
    )

    events = list(extract_events(document, "QueueParams"))

    assert events == [{"queue": "600"}, {"queue": "700"}]
    assert response_status(document) == "Success"


def test_parse_document_rejects_malformed_xml() -> None:
    with pytest.raises(ProtocolError):
        parse_document("<ajax-response><response>")


def test_queue_stats_for_mixed_members() -> None:
    queue = QueueStatus(
        number="600",
        members=(
            _member("a", "Not in Use"),
            _member("b", "In Use"),
            _member("c", "Busy", paused=True),
        ),
    )

    result = compute_queue_stats(queue)

    assert (result.stats.available, result.stats.busy, result.stats.offline) == (1, 1, 1)
    assert result.stats.total == 3
    assert result.ready is True
    assert result.full is False


def test_queue_stats_counts_unknown_status_offline_and_flags_full() -> None:
    queue = QueueStatus(
        number="600",
        members=(_member("a", "Ringing"), _member("b", "Busy")),
    )

    result = compute_queue_stats(queue)

    assert result.stats.offline == 1
    assert result.stats.busy == 1
    assert result.ready is True
    assert result.full is True


def test_members_sorted_by_name_case_sensitive_and_stable() -> None:
    queue = QueueStatus(
        number="600",
        members=(
            QueueMember(name="bob", location="first"),
            QueueMember(name="Zed"),
            QueueMember(name="Alice"),
            QueueMember(name="bob", location="second"),
        ),
    )

    once = compute_queue_stats(queue)
    twice = compute_queue_stats(once)

    names = [member.name for member in once.members]
    assert names == ["Alice", "Zed", "bob", "bob"]
    assert [member.location for member in once.members][2:] == ["first", "second"]
    assert twice.members == once.members


def test_queue_status_end_to_end() -> None:
    decoder, store, _, _ = _decoder()
    body = mxml(
        SUCCESS_HEADER,
        {"event": "QueueParams", "queue": "600", "strategy": "ringall", "calls": "2"},
        {
            "event": "QueueMember",
            "queue": "600",
            "name": "Zoe",
            "stateinterface": "SIP/4821",
            "status": "2",
            "paused": "0",
        },
        {
            "event": "QueueMember",
            "queue": "600",
            "name": "Adam",
            "stateinterface": "garbage",
            "status": "1",
            "paused": "1",
        },
        {"event": "QueueEntry", "queue": "600", "position": "1", "calleridnum": "5551234"},
        {"event": "QueueStatusComplete", "eventlist": "Complete"},
    )

    handled = decoder.handle(ManagerTask(action="QueueStatus"), body)

    assert handled is True
    queue = store.read().queue_status["600"]
    assert len(queue.members) == 2
    assert [member.name for member in queue.members] == ["Adam", "Zoe"]
    adam, zoe = queue.members
    assert adam.paused is True
    assert adam.extension == 0
    assert adam.status == "Not in Use"
    assert zoe.extension == 4821
    assert zoe.status == "In Use"
    assert queue.stats.available == 0
    assert queue.stats.busy == 1
    assert queue.stats.offline == 1
    assert queue.stats.total == 2
    assert queue.stats.calls == "2"
    assert queue.ready is True
    assert queue.full is True
    assert queue.strategy == "ringall"
    assert queue.callers[0].caller_number == "5551234"


def test_queue_status_skips_malformed_events_and_keeps_the_rest() -> None:
    telemetry = RecordingTelemetrySink()
    session = SessionManager(60.0, clock=FakeClock())
    session.renew(force=True)
    store = SnapshotStore()
    decoder = ResponseDecoder(store, session, telemetry=telemetry)
    body = mxml(
        SUCCESS_HEADER,
        {"event": "QueueParams", "queue": "600"},
        {"event": "QueueMember", "queue": "600"},
        {"event": "QueueMember", "queue": "999", "name": "Ghost"},
        {"event": "QueueMember", "queue": "600", "name": "Real", "status": "1"},
    )

    decoder.handle(ManagerTask(action="QueueStatus"), body)

    queue = store.read().queue_status["600"]
    assert [member.name for member in queue.members] == ["Real"]
    assert queue.stats.available == 1
    decode_errors = [event for event in telemetry.events if isinstance(event, DecodeErrorEvent)]
    assert len(decode_errors) == 2


def test_pure_decoder_raises_decode_error_by_default() -> None:
    document = parse_document(mxml(SUCCESS_HEADER, {"event": "QueueParams"}))

    with pytest.raises(DecodeError):
        decode_queue_status(document)


def test_queue_status_replaces_previous_region() -> None:
    decoder, store, _, _ = _decoder()
    decoder.handle(
        ManagerTask(action="QueueStatus"),
        mxml(SUCCESS_HEADER, {"event": "QueueParams", "queue": "600"}),
    )
    decoder.handle(
        ManagerTask(action="QueueStatus"),
        mxml(SUCCESS_HEADER, {"event": "QueueParams", "queue": "700"}),
    )

    assert list(store.read().queue_status) == ["700"]


def test_parked_calls_are_renamed() -> None:
    decoder, store, _, _ = _decoder()
    body = mxml(
        SUCCESS_HEADER,
        {
            "event": "ParkedCall",
            "exten": "701",
            "channel": "SIP/4821-00000012",
            "timeout": "45",
            "duration": "12",
            "calleridnum": "5551234",
            "calleridname": "Pat",
            "connectedlinenum": "4821",
            "connectedlinename": "Front Desk",
        },
    )

    decoder.handle(ManagerTask(action="ParkedCalls"), body)

    (call,) = store.read().parked
    assert call.slot == "701"
    assert call.wait == "12"
    assert call.caller_name == "Pat"
    assert call.connected_number == "4821"
    assert call.connected_name == "Front Desk"


def test_queue_summary_and_channels_pass_through() -> None:
    decoder, store, _, _ = _decoder()
    decoder.handle(
        ManagerTask(action="QueueSummary"),
        mxml(
            SUCCESS_HEADER,
            {"event": "QueueSummary", "queue": "600", "loggedin": "3", "available": "1"},
        ),
    )
    decoder.handle(
        ManagerTask(action="CoreShowChannels"),
        mxml(
            SUCCESS_HEADER,
            {"event": "CoreShowChannel", "channel": "SIP/200-1", "Duration": "00:01:02"},
        ),
    )

    snapshot = store.read()
    assert snapshot.queue_summary["600"].logged_in == "3"
    assert snapshot.queue_summary["600"].available == "1"
    assert dict(snapshot.channels[0]) == {"channel": "SIP/200-1", "duration": "00:01:02"}
    assert snapshot.to_dict()["queueSummary"]["600"]["number"] == "600"


def test_success_response_slides_session_from_now() -> None:
    decoder, _, session, clock = _decoder()
    clock.now += 30.0

    decoder.handle(ManagerTask(action="QueueSummary"), mxml(SUCCESS_HEADER))

    assert session.expires_at == clock.now + 60.0


def test_error_response_leaves_state_untouched() -> None:
    decoder, store, session, clock = _decoder()
    before = store.read()
    expires = session.expires_at
    clock.now += 10.0

    handled = decoder.handle(
        ManagerTask(action="CoreShowChannels"),
        mxml({"response": "Error", "message": "Permission denied"}),
    )

    assert handled is False
    assert store.read() is before
    assert session.expires_at == expires


def test_login_response_forces_session_open() -> None:
    clock = FakeClock()
    session = SessionManager(60.0, clock=clock)
    decoder = ResponseDecoder(SnapshotStore(), session)

    decoder.handle(
        ManagerTask(action="Login"),
        mxml({"response": "Success", "message": "Authentication accepted"}),
    )

    assert not session.is_expired()
    assert session.expires_at == clock.now + 60.0


def test_raw_error_line_discards_response() -> None:
    decoder, store, _, _ = _decoder()
    before = store.read()

    handled = decoder.handle(
        ManagerTask(action="Command", transport=Transport.RAW),
        "Response: Error\r\nMessage: Permission denied\r\n",
    )

    assert handled is False
    assert store.read() is before


def test_raw_success_is_unsupported_no_op() -> None:
    decoder, store, _, _ = _decoder()
    before = store.read()

    handled = decoder.handle(
        ManagerTask(action="Command", transport=Transport.RAW),
        "Response: Success\r\nMessage: Command output follows\r\n",
    )

    assert handled is True
    assert store.read() is before


def test_raw_empty_body_falls_through_and_renews_session() -> None:
    decoder, store, session, clock = _decoder()
    before = store.read()
    clock.now += 30.0

    handled = decoder.handle(ManagerTask(action="Command", transport=Transport.RAW), "")

    assert handled is True
    assert store.read() is before
    assert session.expires_at == clock.now + 60.0
