from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from app.schemas.invoice import ExtractedInvoice


class QueueItemResponse(BaseModel):
    id: str
    filename: str
    status: str
    invoice: Optional[ExtractedInvoice]
    duplicate_of: Optional[int]
    selected: bool
    vendor_id: Optional[str]
    suggested_vendor: Optional[str]
    external_bill_id: Optional[str]
    error: Optional[str]
    warnings: List[str]
    source_key: Optional[str]
    created_at: datetime

    @classmethod
    def from_item(cls, item) -> "QueueItemResponse":
        return cls(
            id=item.id,
            filename=item.filename,
            status=item.status.value,
            invoice=item.invoice,
            duplicate_of=item.duplicate_of,
            selected=item.selected,
            vendor_id=item.vendor_id,
            suggested_vendor=item.suggested_vendor,
            external_bill_id=item.external_bill_id,
            error=item.error,
            warnings=list(item.warnings),
            source_key=item.source_key,
            created_at=item.created_at,
        )


class InvoiceUpdate(BaseModel):
    invoice: ExtractedInvoice
    recompute_totals: bool = True


class SelectionUpdate(BaseModel):
    selected: bool


class UploadRequest(BaseModel):
    vendor_id: Optional[str] = None  # Skip vendor resolution with an already confirmed vendor
    proceed_if_duplicate: bool = False


class BatchUploadRequest(BaseModel):
    item_ids: Optional[List[str]] = None  # Defaults to the selected items
    include_duplicates: bool = False


class BatchUploadResponse(BaseModel):
    results: Dict[str, int]
    items: List[QueueItemResponse]
