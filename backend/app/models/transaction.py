from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, JSON
from sqlalchemy.sql import func
from app.database import Base


class Transaction(Base):
    """
    One upload attempt against the accounting system, successful or not.
    Rows are append-only; they are never updated and only removed by a bulk clear.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    processed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    vendor_name = Column(String, nullable=True, index=True)
    invoice_number = Column(String, nullable=True, index=True)
    invoice_date = Column(String, nullable=True)  # As extracted (YYYY-MM-DD)
    total_amount = Column(Numeric(12, 2), nullable=True)
    currency = Column(String, nullable=True)

    status = Column(String, nullable=False, index=True)  # success, error
    external_bill_id = Column(String, nullable=True)  # Zoho bill_id on success
    error_message = Column(Text, nullable=True)
    file_name = Column(String, nullable=True)

    # Full extracted payload for audit
    extracted_data = Column(JSON, nullable=True)
