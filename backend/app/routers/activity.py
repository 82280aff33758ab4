from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.database import get_db
from app.schemas.activity import ActivityLogResponse
from app.services.activity_log_service import ActivityLogService

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("", response_model=List[ActivityLogResponse])
def list_activity(limit: Optional[int] = Query(None, ge=1), db: Session = Depends(get_db)):
    """Activity log, newest first"""
    return ActivityLogService(db).list_entries(limit)


@router.delete("")
def clear_activity(db: Session = Depends(get_db)):
    return {"deleted": ActivityLogService(db).clear()}
