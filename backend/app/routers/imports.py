"""
Imports Router - PDFs staged from the document store inbox folder
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_extractor, get_integration_config, get_queue, get_storage
from app.models.pending_import import PendingImport
from app.schemas.pending_import import PendingImportResponse
from app.schemas.queue import QueueItemResponse
from app.schemas.settings import IntegrationConfig
from app.services.folder_watcher import list_pending, mark_fetched, poll_inbox
from app.services.invoice_intake_service import intake_invoice
from app.services.upload_queue import UploadQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.get("/pending", response_model=List[PendingImportResponse])
def get_pending_imports(db: Session = Depends(get_db)):
    """Staged files not yet imported into the queue"""
    return list_pending(db)


@router.post("/poll", response_model=List[PendingImportResponse])
def poll_imports(
    db: Session = Depends(get_db),
    config: IntegrationConfig = Depends(get_integration_config),
    storage=Depends(get_storage)
):
    """Poll the inbox folder now instead of waiting for the background job"""
    if not config.document_store_enabled:
        raise HTTPException(status_code=400, detail="Document store integration is disabled")
    return poll_inbox(db, config, storage)


@router.post("/{import_id}/import", response_model=QueueItemResponse)
async def import_pending(
    import_id: int,
    db: Session = Depends(get_db),
    extractor=Depends(get_extractor),
    storage=Depends(get_storage),
    queue: UploadQueue = Depends(get_queue)
):
    """Download a staged file and run it through extraction"""
    pending = db.query(PendingImport).filter(PendingImport.id == import_id).first()
    if not pending:
        raise HTTPException(status_code=404, detail="Pending import not found")
    if pending.fetched_at is not None:
        raise HTTPException(status_code=400, detail="File was already imported")

    try:
        content = storage.download_file(pending.storage_key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"File {pending.storage_key} is no longer in the inbox")

    item = await intake_invoice(
        db, content, pending.filename, extractor, storage, queue, source_key=pending.storage_key
    )
    mark_fetched(db, pending)
    logger.info(f"Imported {pending.storage_key} as queue item {item.id}")
    return QueueItemResponse.from_item(item)
