from __future__ import annotations

from asterisk_ajam_client import TaskQueue, Transport


def test_enqueue_drops_duplicate_action_names() -> None:
    queue = TaskQueue()

    assert queue.enqueue("QueueStatus") is True
    assert queue.enqueue("QueueStatus", {"Queue": "600"}) is False

    assert len(queue) == 1
    assert queue.pending_actions == ("QueueStatus",)


def test_dequeue_is_fifo_and_allows_requeue_after_pop() -> None:
    queue = TaskQueue()
    queue.enqueue("CoreShowChannels")
    queue.enqueue("ParkedCalls", transport=Transport.RAW)

    first = queue.dequeue_next()
    assert first is not None
    assert first.action == "CoreShowChannels"
    assert queue.enqueue("CoreShowChannels") is True
    assert queue.pending_actions == ("ParkedCalls", "CoreShowChannels")

    second = queue.dequeue_next()
    assert second is not None
    assert second.transport is Transport.RAW
    assert second.attempts == 0


def test_dequeue_on_empty_queue_marks_idle() -> None:
    queue = TaskQueue()
    assert queue.claim() is True
    assert queue.claim() is False

    assert queue.dequeue_next() is None
    assert queue.working is False
    assert queue.claim() is True


def test_enqueue_copies_parameters_and_stamps_time() -> None:
    params = {"Queue": "600"}
    queue = TaskQueue(clock=lambda: 42.0)
    queue.enqueue("QueueStatus", params)
    params["Queue"] = "700"

    task = queue.dequeue_next()
    assert task is not None
    assert task.parameters == {"Queue": "600"}
    assert task.enqueued_at == 42.0
