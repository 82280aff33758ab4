"""
Invoices Router - intake, review and upload of the invoice queue
"""
import logging
import os
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_extractor, get_orchestrator, get_queue, get_storage
from app.schemas.queue import (
    BatchUploadRequest,
    BatchUploadResponse,
    InvoiceUpdate,
    QueueItemResponse,
    SelectionUpdate,
    UploadRequest,
)
from app.schemas.vendor import VendorDetails
from app.services.exceptions import InvalidTransitionError
from app.services.invoice_intake_service import apply_review_edits, intake_invoice
from app.services.upload_orchestrator import UploadOrchestrator
from app.services.upload_queue import UploadQueue, UploadQueueItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _get_item(queue: UploadQueue, item_id: str) -> UploadQueueItem:
    item = queue.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Queue item not found")
    return item


@router.post("/extract", response_model=QueueItemResponse)
async def extract_invoice(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    extractor=Depends(get_extractor),
    storage=Depends(get_storage),
    queue: UploadQueue = Depends(get_queue)
):
    """Upload a PDF invoice, extract its data and add it to the queue"""
    file_ext = os.path.splitext(file.filename.lower())[1] if file.filename else ''
    if file_ext != '.pdf':
        raise HTTPException(status_code=400, detail="File type not supported. Only PDF invoices are accepted")

    file_content = await file.read()
    if not file_content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    item = await intake_invoice(db, file_content, file.filename, extractor, storage, queue)
    return QueueItemResponse.from_item(item)


@router.get("/queue", response_model=List[QueueItemResponse])
def list_queue(queue: UploadQueue = Depends(get_queue)):
    """List queue items in intake order"""
    return [QueueItemResponse.from_item(item) for item in queue.list_items()]


@router.get("/queue/{item_id}", response_model=QueueItemResponse)
def get_queue_item(item_id: str, queue: UploadQueue = Depends(get_queue)):
    return QueueItemResponse.from_item(_get_item(queue, item_id))


@router.put("/queue/{item_id}", response_model=QueueItemResponse)
def update_queue_item(
    item_id: str,
    update: InvoiceUpdate,
    db: Session = Depends(get_db),
    queue: UploadQueue = Depends(get_queue)
):
    """Save the user's edits to the extracted data"""
    item = _get_item(queue, item_id)
    try:
        apply_review_edits(db, item, update.invoice, recompute_totals=update.recompute_totals)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QueueItemResponse.from_item(item)


@router.patch("/queue/{item_id}/selection", response_model=QueueItemResponse)
def update_selection(item_id: str, update: SelectionUpdate, queue: UploadQueue = Depends(get_queue)):
    item = _get_item(queue, item_id)
    item.selected = update.selected
    return QueueItemResponse.from_item(item)


@router.delete("/queue/{item_id}")
def remove_queue_item(item_id: str, queue: UploadQueue = Depends(get_queue)):
    item = _get_item(queue, item_id)
    queue.remove(item.id)
    return {"removed": item.id}


@router.post("/queue/upload-batch", response_model=BatchUploadResponse)
async def upload_batch(
    request: BatchUploadRequest,
    queue: UploadQueue = Depends(get_queue),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    """Upload the selected (or listed) items one at a time"""
    if request.item_ids is not None:
        items = [_get_item(queue, item_id) for item_id in request.item_ids]
    else:
        items = queue.selected()
    if not items:
        raise HTTPException(status_code=400, detail="No invoices selected for upload")

    results = await orchestrator.upload_batch(items, include_duplicates=request.include_duplicates)
    return BatchUploadResponse(
        results=results,
        items=[QueueItemResponse.from_item(item) for item in items]
    )


@router.post("/queue/{item_id}/upload", response_model=QueueItemResponse)
async def upload_queue_item(
    item_id: str,
    request: UploadRequest = UploadRequest(),
    queue: UploadQueue = Depends(get_queue),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    """Upload one reviewed invoice to Zoho Books as a bill"""
    item = _get_item(queue, item_id)
    if item.duplicate_of and not request.proceed_if_duplicate:
        raise HTTPException(
            status_code=409,
            detail=f"Probable duplicate of transaction {item.duplicate_of}. Resend with proceed_if_duplicate=true to upload anyway"
        )

    try:
        await orchestrator.upload(item, confirmed_vendor_id=request.vendor_id)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QueueItemResponse.from_item(item)


@router.post("/queue/{item_id}/vendor/confirm", response_model=QueueItemResponse)
async def confirm_vendor(
    item_id: str,
    details: VendorDetails,
    queue: UploadQueue = Depends(get_queue),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    """Create the vendor with user-confirmed details and continue the upload"""
    item = _get_item(queue, item_id)
    try:
        await orchestrator.confirm_vendor(item, details)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QueueItemResponse.from_item(item)


@router.post("/queue/{item_id}/vendor/cancel", response_model=QueueItemResponse)
def cancel_vendor(
    item_id: str,
    queue: UploadQueue = Depends(get_queue),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    item = _get_item(queue, item_id)
    try:
        orchestrator.cancel_vendor(item)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return QueueItemResponse.from_item(item)
