from sqlalchemy import Column, Integer, String
from app.database import Base


class CachedAccount(Base):
    """Chart-of-accounts entry cached from Zoho Books, replaced on every refresh"""
    __tablename__ = "cached_accounts"

    account_id = Column(String, primary_key=True)
    account_name = Column(String, nullable=False)
    account_type = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)  # Order returned by Zoho
