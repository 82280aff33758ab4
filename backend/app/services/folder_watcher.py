"""
Folder Watcher - stages PDFs dropped into the document store inbox folder as pending imports.
"""
import logging
from datetime import datetime, timezone
from typing import List
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.pending_import import PendingImport
from app.schemas.settings import IntegrationConfig
from app.services.config_store import ConfigStore

logger = logging.getLogger(__name__)


def poll_inbox(db: Session, config: IntegrationConfig, storage) -> List[PendingImport]:
    """
    Stage every inbox file that is not already staged.

    Fetched rows whose file has left the inbox (moved to processed/failed) are pruned,
    so a new file reusing the same name is picked up again.

    Returns:
        Newly staged rows
    """
    keys = storage.list_files(config.inbox_folder)
    key_set = set(keys)
    existing = {row.storage_key: row for row in db.query(PendingImport).all()}

    for key, row in existing.items():
        if row.fetched_at is not None and key not in key_set:
            db.delete(row)

    staged = []
    for key in keys:
        if key in existing:
            continue
        row = PendingImport(storage_key=key, filename=key.rsplit('/', 1)[-1])
        db.add(row)
        staged.append(row)

    db.commit()
    if staged:
        logger.info(f"Staged {len(staged)} new file(s) from {config.inbox_folder}")
    return staged


def list_pending(db: Session) -> List[PendingImport]:
    return (
        db.query(PendingImport)
        .filter(PendingImport.fetched_at.is_(None))
        .order_by(PendingImport.id.asc())
        .all()
    )


def mark_fetched(db: Session, pending: PendingImport) -> None:
    # If this commit fails the row stays pending and is delivered again
    pending.fetched_at = datetime.now(timezone.utc)
    db.commit()


async def poll_inbox_job() -> None:
    """Scheduled job: poll the inbox when the document store integration is enabled"""
    from app.services.storage_service import storage_service

    db = SessionLocal()
    try:
        config = ConfigStore(db).load()
        if not config.document_store_enabled:
            return
        poll_inbox(db, config, storage_service)
    finally:
        db.close()
