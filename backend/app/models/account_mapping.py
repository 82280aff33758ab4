from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from app.database import Base


class AccountMapping(Base):
    """
    Learned keyword -> GL account association.
    Keys are either a bare keyword ("shipping") or a vendor composite ("acme::freight charge").
    """
    __tablename__ = "account_mappings"

    key = Column(String, primary_key=True)
    account_id = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
