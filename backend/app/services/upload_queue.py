"""
Upload queue - per-invoice state machine and the in-process queue of items under review.

Queue items live only in this process; the durable outcome of an upload is the
Transaction row written by the orchestrator.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from app.schemas.invoice import ExtractedInvoice
from app.services.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class QueueStatus(str, Enum):
    PENDING = "pending"
    EXTRACTED = "extracted"
    PENDING_VENDOR = "pending_vendor"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


ALLOWED_TRANSITIONS = {
    QueueStatus.PENDING: {QueueStatus.EXTRACTED, QueueStatus.ERROR},
    QueueStatus.EXTRACTED: {QueueStatus.UPLOADING, QueueStatus.PENDING_VENDOR, QueueStatus.ERROR},
    QueueStatus.PENDING_VENDOR: {QueueStatus.UPLOADING, QueueStatus.ERROR},
    QueueStatus.UPLOADING: {QueueStatus.SUCCESS, QueueStatus.ERROR},
    QueueStatus.ERROR: {QueueStatus.EXTRACTED},
    QueueStatus.SUCCESS: set(),
}

UPLOADABLE_STATUSES = {QueueStatus.EXTRACTED, QueueStatus.PENDING_VENDOR, QueueStatus.ERROR}


@dataclass
class UploadQueueItem:
    filename: str
    storage_key: Optional[str] = None
    source_key: Optional[str] = None  # Document store inbox key, when imported from a folder
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: QueueStatus = QueueStatus.PENDING
    invoice: Optional[ExtractedInvoice] = None
    duplicate_of: Optional[int] = None
    selected: bool = False
    vendor_id: Optional[str] = None
    suggested_vendor: Optional[str] = None
    external_bill_id: Optional[str] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def can_transition(self, new_status: QueueStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition(
        self,
        new_status: QueueStatus,
        bill_id: Optional[str] = None,
        error: Optional[str] = None
    ) -> None:
        """
        Move to new_status.

        success requires the created bill id and error requires a message, so an item
        can never be successful without a bill or failed without a reason.
        """
        if not self.can_transition(new_status):
            raise InvalidTransitionError(
                f"Cannot move invoice {self.filename} from {self.status.value} to {new_status.value}"
            )
        if new_status == QueueStatus.SUCCESS and not bill_id:
            raise InvalidTransitionError("A successful upload requires the created bill id")
        if new_status == QueueStatus.ERROR and not error:
            raise InvalidTransitionError("An error transition requires an error message")

        logger.debug(f"Queue item {self.id}: {self.status.value} -> {new_status.value}")
        self.status = new_status
        if new_status == QueueStatus.SUCCESS:
            self.external_bill_id = bill_id
            self.error = None
        elif new_status == QueueStatus.ERROR:
            self.error = error
        elif new_status in (QueueStatus.EXTRACTED, QueueStatus.UPLOADING):
            self.error = None


class UploadQueue:
    """In-process registry of queue items, keyed by id, in intake order"""

    def __init__(self):
        self._items: Dict[str, UploadQueueItem] = {}

    def add(self, item: UploadQueueItem) -> UploadQueueItem:
        self._items[item.id] = item
        return item

    def get(self, item_id: str) -> Optional[UploadQueueItem]:
        return self._items.get(item_id)

    def remove(self, item_id: str) -> Optional[UploadQueueItem]:
        return self._items.pop(item_id, None)

    def list_items(self) -> List[UploadQueueItem]:
        return list(self._items.values())

    def selected(self) -> List[UploadQueueItem]:
        return [item for item in self._items.values() if item.selected]

    def clear(self) -> None:
        self._items.clear()


# Singleton instance
upload_queue = UploadQueue()
