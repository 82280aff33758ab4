from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class PendingImportResponse(BaseModel):
    id: int
    storage_key: str
    filename: str
    discovered_at: Optional[datetime]
    fetched_at: Optional[datetime]

    class Config:
        from_attributes = True
