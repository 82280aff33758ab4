"""
Upload Orchestrator

Sequences one invoice upload:
vendor resolution -> bill creation -> file attachment -> mapping learning -> ledger write.

Every failure is caught here, turned into a message on the queue item, an activity log
entry and an error Transaction. The only automatic retry is one token refresh after a 401.
"""
import logging
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from app.config import settings
from app.schemas.invoice import ExtractedInvoice
from app.schemas.settings import IntegrationConfig
from app.schemas.vendor import VendorDetails
from app.services.account_suggester import AccountSuggester
from app.services.activity_log_service import ActivityLogService
from app.services.exceptions import (
    AuthExpiredError,
    InvalidTransitionError,
    InvoiceProcessingError,
    TokenRefreshError,
)
from app.services.ledger_store import LedgerStore
from app.services.upload_queue import QueueStatus, UploadQueueItem, UPLOADABLE_STATUSES
from app.services.vendor_resolver import VendorResolver

logger = logging.getLogger(__name__)


def build_bill_payload(invoice: ExtractedInvoice, vendor_id: str, default_currency: str) -> Dict:
    """Zoho Books bill payload for an extracted invoice"""
    line_items = []
    for index, item in enumerate(invoice.line_items):
        line = {
            "description": item.description or '',
            "rate": item.rate if item.rate is not None else (item.amount or 0),
            "quantity": item.quantity if item.quantity is not None else 1,
            "item_order": index,
        }
        if item.account_id:
            line["account_id"] = item.account_id
        line_items.append(line)

    payload = {
        "vendor_id": vendor_id,
        "bill_number": invoice.invoice_number,
        "date": invoice.invoice_date,
        "due_date": invoice.due_date or invoice.invoice_date,
        "reference_number": invoice.reference_number or '',
        "currency_code": invoice.currency or default_currency,
        "line_items": line_items,
        "notes": invoice.notes or '',
    }
    if invoice.tax and invoice.tax > 0:
        payload["adjustment"] = round(invoice.tax, 2)
        payload["adjustment_description"] = "Tax"
    return payload


class UploadOrchestrator:
    def __init__(
        self,
        config: IntegrationConfig,
        zoho_client,
        vendor_resolver: VendorResolver,
        account_suggester: AccountSuggester,
        ledger: LedgerStore,
        activity_log: ActivityLogService,
        token_service=None,
        storage=None,
        auto_create_vendors: Optional[bool] = None,
        default_currency: Optional[str] = None
    ):
        self.config = config
        self.zoho = zoho_client
        self.vendor_resolver = vendor_resolver
        self.suggester = account_suggester
        self.ledger = ledger
        self.activity_log = activity_log
        self.token_service = token_service
        self.storage = storage
        self.auto_create_vendors = settings.auto_create_vendors if auto_create_vendors is None else auto_create_vendors
        self.default_currency = default_currency or settings.default_currency

    async def call_with_token_refresh(self, operation, *args):
        """Run an external call; on 401 refresh the token once and retry once"""
        try:
            return await operation(*args)
        except AuthExpiredError:
            if not self.token_service:
                raise
            self.activity_log.warning("Access token expired, refreshing...")
            try:
                await self.token_service.refresh()
            except TokenRefreshError as e:
                raise AuthExpiredError(
                    f"Access token expired and could not be refreshed: {e.message}. Please update your token in Settings.",
                    status_code=401
                )
            self.activity_log.success("Access token refreshed successfully")
            # A second 401 propagates
            return await operation(*args)

    async def upload(self, item: UploadQueueItem, confirmed_vendor_id: Optional[str] = None) -> UploadQueueItem:
        """
        Upload one queue item to Zoho Books.

        Args:
            item: Queue item in extracted, pending_vendor or error state
            confirmed_vendor_id: Vendor id confirmed by the user; skips vendor resolution

        Returns:
            The item, now in success, error or pending_vendor
        """
        if item.status not in UPLOADABLE_STATUSES:
            raise InvalidTransitionError(f"Invoice {item.filename} cannot be uploaded while {item.status.value}")
        if item.invoice is None:
            raise InvalidTransitionError(f"Invoice {item.filename} has no extracted data")

        if item.status == QueueStatus.ERROR:
            item.transition(QueueStatus.EXTRACTED)

        invoice = item.invoice
        label = invoice.invoice_number or item.filename

        try:
            vendor_id = confirmed_vendor_id or item.vendor_id
            if not vendor_id:
                self.activity_log.info(f"Searching for vendor: {invoice.vendor_name}...")
                resolution = await self.call_with_token_refresh(
                    self.vendor_resolver.resolve, invoice.vendor_name, self.auto_create_vendors
                )
                if not resolution.found:
                    item.suggested_vendor = resolution.suggested_name
                    if item.status != QueueStatus.PENDING_VENDOR:
                        item.transition(QueueStatus.PENDING_VENDOR)
                    self.activity_log.warning(
                        f"Vendor '{invoice.vendor_name}' not found in Zoho Books. Confirm the vendor details to continue."
                    )
                    return item
                if resolution.created:
                    self.activity_log.warning(f"Created new vendor: {resolution.matched_name}")
                else:
                    self.activity_log.success(f"Found existing vendor: {resolution.matched_name}")
                vendor_id = resolution.vendor_id

            item.vendor_id = vendor_id
            item.transition(QueueStatus.UPLOADING)

            self.activity_log.info(f"Creating bill {label}...")
            bill = await self.call_with_token_refresh(
                self.zoho.create_bill, build_bill_payload(invoice, vendor_id, self.default_currency)
            )
        except InvoiceProcessingError as e:
            return self._fail(item, e.message)
        except InvalidTransitionError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error uploading {item.filename}: {str(e)}", exc_info=True)
            return self._fail(item, f"Unexpected error: {str(e)}")

        bill_id = str(bill["bill_id"])
        await self._attach_original(item, bill_id)

        try:
            self.suggester.learn(invoice.vendor_name, invoice.line_items)
        except Exception as e:
            self.ledger.db.rollback()
            logger.warning(f"Failed to save account mappings for {label}: {str(e)}")

        item.transition(QueueStatus.SUCCESS, bill_id=bill_id)
        self._record(invoice, "success", item.filename, external_bill_id=bill_id)

        total = invoice.total or 0
        currency = invoice.currency or self.default_currency
        self.activity_log.success(f"Invoice {label} uploaded successfully! Amount: {total:.2f} {currency}")
        self._file_source_document(item)
        return item

    async def confirm_vendor(self, item: UploadQueueItem, details: VendorDetails) -> UploadQueueItem:
        """Create the user-confirmed vendor, then continue the upload"""
        if item.status != QueueStatus.PENDING_VENDOR:
            raise InvalidTransitionError(f"Invoice {item.filename} is not waiting for vendor confirmation")

        try:
            contact = await self.call_with_token_refresh(self.vendor_resolver.create_vendor, details)
        except InvoiceProcessingError as e:
            return self._fail(item, e.message)

        self.activity_log.warning(f"Created new vendor: {contact.get('contact_name') or details.name}")
        return await self.upload(item, confirmed_vendor_id=str(contact["contact_id"]))

    def cancel_vendor(self, item: UploadQueueItem) -> UploadQueueItem:
        """Leave the item in pending_vendor; no vendor, no bill, no transaction"""
        if item.status != QueueStatus.PENDING_VENDOR:
            raise InvalidTransitionError(f"Invoice {item.filename} is not waiting for vendor confirmation")
        item.warnings.append("Vendor creation cancelled")
        self.activity_log.info(f"Vendor creation cancelled for {item.filename}")
        return item

    async def upload_batch(self, items: List[UploadQueueItem], include_duplicates: bool = False) -> Dict[str, int]:
        """
        Upload items one at a time. A failing item never stops the batch.

        Returns:
            Counts per outcome: success, error, pending_vendor, skipped
        """
        results = {"success": 0, "error": 0, "pending_vendor": 0, "skipped": 0}
        self.activity_log.info(f"Uploading {len(items)} invoice(s)...")

        for item in items:
            if item.status not in UPLOADABLE_STATUSES or item.invoice is None:
                results["skipped"] += 1
                continue
            if item.duplicate_of and not include_duplicates:
                self.activity_log.warning(
                    f"Skipped {item.filename}: probable duplicate of transaction {item.duplicate_of}"
                )
                results["skipped"] += 1
                continue

            await self.upload(item)
            results[item.status.value] = results.get(item.status.value, 0) + 1

        self.activity_log.info(
            f"Batch complete: {results['success']} uploaded, {results['error']} failed, "
            f"{results['pending_vendor']} waiting for vendor, {results['skipped']} skipped"
        )
        return results

    def _fail(self, item: UploadQueueItem, message: str) -> UploadQueueItem:
        item.transition(QueueStatus.ERROR, error=message)
        invoice = item.invoice
        self._record(invoice, "error", item.filename, error_message=message)
        self.activity_log.error(f"Failed to upload {invoice.invoice_number or item.filename}: {message}")
        self._file_source_document(item)
        return item

    def _record(self, invoice: ExtractedInvoice, status: str, file_name: str, **kwargs) -> None:
        # The bill may already exist in Zoho; a failed ledger write is logged, not raised
        try:
            self.ledger.record_transaction(invoice, status, file_name=file_name, **kwargs)
        except Exception as e:
            self.ledger.db.rollback()
            logger.error(f"Failed to record {status} transaction for {file_name}: {str(e)}", exc_info=True)

    async def _attach_original(self, item: UploadQueueItem, bill_id: str) -> None:
        if not self.storage or not item.storage_key:
            return
        try:
            content = await run_in_threadpool(self.storage.download_file, item.storage_key)
            await self.zoho.attach_file(bill_id, item.filename, content)
            logger.info(f"Attached {item.filename} to bill {bill_id}")
        except Exception as e:
            self.activity_log.warning(f"Bill created but attaching {item.filename} failed: {str(e)}")

    def _file_source_document(self, item: UploadQueueItem) -> None:
        """Move a document-store import into the processed or failed folder"""
        if not item.source_key or not self.storage or not self.config.document_store_enabled:
            return
        folder = self.config.processed_folder if item.status == QueueStatus.SUCCESS else self.config.failed_folder
        try:
            item.source_key = self.storage.move_file(item.source_key, folder)
        except Exception as e:
            self.activity_log.warning(f"Could not move {item.filename} to {folder} folder: {str(e)}")
