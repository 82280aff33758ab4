from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityLogResponse(BaseModel):
    id: int
    created_at: Optional[datetime]
    entry_type: str
    message: str
    details: Optional[dict]

    class Config:
        from_attributes = True
