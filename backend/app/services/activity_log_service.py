"""
Activity Log Service - timestamped, user-visible record of every action.
Entries are mirrored to the application logger and capped at settings.activity_log_limit.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from app.config import settings
from app.models.activity_log import ActivityLogEntry

logger = logging.getLogger(__name__)

ENTRY_TYPES = ("success", "error", "warning", "info")

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ActivityLogService:
    def __init__(self, db: Session, limit: Optional[int] = None):
        self.db = db
        self.limit = limit or settings.activity_log_limit

    def add(self, entry_type: str, message: str, details: Optional[dict] = None) -> ActivityLogEntry:
        if entry_type not in ENTRY_TYPES:
            raise ValueError(f"Unknown activity entry type: {entry_type}")

        logger.log(_LOG_LEVELS[entry_type], message)

        entry = ActivityLogEntry(entry_type=entry_type, message=message, details=details)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        self._trim()
        return entry

    def success(self, message: str, details: Optional[dict] = None) -> ActivityLogEntry:
        return self.add("success", message, details)

    def info(self, message: str, details: Optional[dict] = None) -> ActivityLogEntry:
        return self.add("info", message, details)

    def warning(self, message: str, details: Optional[dict] = None) -> ActivityLogEntry:
        return self.add("warning", message, details)

    def error(self, message: str, details: Optional[dict] = None) -> ActivityLogEntry:
        return self.add("error", message, details)

    def list_entries(self, limit: Optional[int] = None) -> List[ActivityLogEntry]:
        """Newest first"""
        return (
            self.db.query(ActivityLogEntry)
            .order_by(ActivityLogEntry.id.desc())
            .limit(limit or self.limit)
            .all()
        )

    def clear(self) -> int:
        deleted = self.db.query(ActivityLogEntry).delete()
        self.db.commit()
        return deleted

    def _trim(self) -> None:
        stale_ids = [
            row.id for row in
            self.db.query(ActivityLogEntry.id)
            .order_by(ActivityLogEntry.id.desc())
            .offset(self.limit)
            .all()
        ]
        if stale_ids:
            self.db.query(ActivityLogEntry).filter(
                ActivityLogEntry.id.in_(stale_ids)
            ).delete(synchronize_session=False)
            self.db.commit()
