from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.database import Base


class PendingImport(Base):
    """
    A file discovered in the document store inbox folder, waiting to be pulled into the upload queue.
    Delivery is at-least-once: a row stays pending until fetched_at is written.
    """
    __tablename__ = "pending_imports"

    id = Column(Integer, primary_key=True, index=True)
    storage_key = Column(String, nullable=False, unique=True, index=True)
    filename = Column(String, nullable=False)
    discovered_at = Column(DateTime(timezone=True), server_default=func.now())
    fetched_at = Column(DateTime(timezone=True), nullable=True, index=True)
