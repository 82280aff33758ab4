from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from app.database import Base


class ActivityLogEntry(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    entry_type = Column(String, nullable=False)  # success, error, warning, info
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
