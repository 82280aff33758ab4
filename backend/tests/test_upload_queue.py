import pytest

from app.services.exceptions import InvalidTransitionError
from app.services.upload_queue import QueueStatus, UploadQueue, UploadQueueItem


def test_happy_path_transitions():
    item = UploadQueueItem(filename="a.pdf")

    item.transition(QueueStatus.EXTRACTED)
    item.transition(QueueStatus.UPLOADING)
    item.transition(QueueStatus.SUCCESS, bill_id="b-1")

    assert item.status == QueueStatus.SUCCESS
    assert item.external_bill_id == "b-1"


def test_success_requires_bill_id():
    item = UploadQueueItem(filename="a.pdf", status=QueueStatus.UPLOADING)

    with pytest.raises(InvalidTransitionError):
        item.transition(QueueStatus.SUCCESS)


def test_error_requires_message():
    item = UploadQueueItem(filename="a.pdf")

    with pytest.raises(InvalidTransitionError):
        item.transition(QueueStatus.ERROR)


def test_success_is_terminal():
    item = UploadQueueItem(filename="a.pdf", status=QueueStatus.SUCCESS)

    for status in QueueStatus:
        assert not item.can_transition(status)


def test_error_can_only_return_to_extracted():
    item = UploadQueueItem(filename="a.pdf")
    item.transition(QueueStatus.ERROR, error="boom")

    with pytest.raises(InvalidTransitionError):
        item.transition(QueueStatus.UPLOADING)
    item.transition(QueueStatus.EXTRACTED)

    assert item.error is None


def test_pending_cannot_upload():
    item = UploadQueueItem(filename="a.pdf")

    with pytest.raises(InvalidTransitionError):
        item.transition(QueueStatus.UPLOADING)


def test_queue_keeps_intake_order_and_selection():
    queue = UploadQueue()
    first = queue.add(UploadQueueItem(filename="a.pdf"))
    second = queue.add(UploadQueueItem(filename="b.pdf", selected=True))

    assert queue.list_items() == [first, second]
    assert queue.selected() == [second]
    assert queue.remove(first.id) is first
    assert queue.get(first.id) is None
