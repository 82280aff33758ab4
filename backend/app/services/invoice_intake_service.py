"""
Invoice intake - turns uploaded PDF bytes into a reviewed-ready queue item:
store file -> extract -> suggest GL accounts -> flag probable duplicates.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.schemas.invoice import ExtractedInvoice
from app.services.account_suggester import AccountSuggester
from app.services.activity_log_service import ActivityLogService
from app.services.duplicate_detector import find_duplicate
from app.services.exceptions import ExtractionError
from app.services.extraction_service import ExtractionService
from app.services.ledger_store import LedgerStore
from app.services.upload_queue import QueueStatus, UploadQueue, UploadQueueItem

logger = logging.getLogger(__name__)


def _flag_duplicate(item: UploadQueueItem, store: LedgerStore, activity_log: ActivityLogService) -> None:
    duplicate = find_duplicate(item.invoice, store.list_transactions())
    item.duplicate_of = duplicate.id if duplicate else None
    if duplicate:
        activity_log.warning(
            f"Possible duplicate: invoice {item.invoice.invoice_number} from {item.invoice.vendor_name} "
            f"was already processed on {duplicate.processed_at}"
        )


async def intake_invoice(
    db: Session,
    file_content: bytes,
    filename: str,
    extraction_service: ExtractionService,
    storage,
    queue: UploadQueue,
    source_key: Optional[str] = None
) -> UploadQueueItem:
    """
    Create a queue item for a PDF and run extraction.

    Extraction failures leave the item in error; they are not upload attempts,
    so no Transaction is written.
    """
    activity_log = ActivityLogService(db)
    item = UploadQueueItem(filename=filename, source_key=source_key)

    try:
        item.storage_key = storage.upload_file(file_content, filename)
    except Exception as e:
        # Only the bill attachment needs the stored copy
        logger.warning(f"Failed to store {filename}, the bill will be created without attachment: {str(e)}")

    queue.add(item)
    activity_log.info(f"Extracting data from {filename}...")

    try:
        invoice = await extraction_service.extract(file_content, filename)
    except ExtractionError as e:
        item.transition(QueueStatus.ERROR, error=e.message)
        activity_log.error(f"Failed to extract from {filename}: {e.message}")
        return item
    except Exception as e:
        logger.error(f"Unexpected extraction failure for {filename}: {str(e)}", exc_info=True)
        item.transition(QueueStatus.ERROR, error=f"Unexpected error: {str(e)}")
        activity_log.error(f"Failed to extract from {filename}: {str(e)}")
        return item

    store = LedgerStore(db)
    AccountSuggester(store).suggest_for_invoice(invoice)
    item.invoice = invoice
    item.warnings = invoice.consistency_warnings()
    _flag_duplicate(item, store, activity_log)

    item.transition(QueueStatus.EXTRACTED)
    activity_log.success(f"Data extracted from {filename}")
    return item


def _line_figures(invoice: Optional[ExtractedInvoice]):
    if invoice is None:
        return None
    return [(line.quantity, line.rate, line.amount) for line in invoice.line_items]


def _line_figures_changed(before: Optional[ExtractedInvoice], after: ExtractedInvoice) -> bool:
    return _line_figures(before) != _line_figures(after)


def apply_review_edits(
    db: Session,
    item: UploadQueueItem,
    invoice: ExtractedInvoice,
    recompute_totals: bool = True
) -> UploadQueueItem:
    """Replace the extracted data with the user's edits"""
    if item.status in (QueueStatus.PENDING, QueueStatus.UPLOADING, QueueStatus.SUCCESS):
        raise ValueError(f"Invoice {item.filename} cannot be edited while {item.status.value}")

    if recompute_totals and _line_figures_changed(item.invoice, invoice):
        invoice.recompute_totals()

    store = LedgerStore(db)
    suggester = AccountSuggester(store)
    for line in invoice.line_items:
        if line.account_id and not line.account_name:
            line.account_name = suggester.account_name(line.account_id)

    if item.invoice and item.invoice.vendor_name != invoice.vendor_name:
        # A different vendor needs a fresh lookup
        item.vendor_id = None
        item.suggested_vendor = None

    item.invoice = invoice
    item.warnings = invoice.consistency_warnings()
    _flag_duplicate(item, store, ActivityLogService(db))

    if item.status == QueueStatus.ERROR:
        item.transition(QueueStatus.EXTRACTED)
    return item
