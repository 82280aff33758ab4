from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal


class TransactionFilters(BaseModel):
    search: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


class TransactionResponse(BaseModel):
    id: int
    processed_at: Optional[datetime]
    vendor_name: Optional[str]
    invoice_number: Optional[str]
    invoice_date: Optional[str]
    total_amount: Optional[Decimal]
    currency: Optional[str]
    status: str
    external_bill_id: Optional[str]
    error_message: Optional[str]
    file_name: Optional[str]
    extracted_data: Optional[dict] = None

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    items: List[TransactionResponse]
    total: int
    page: int
    page_size: int


class DuplicateCheckResponse(BaseModel):
    duplicate: bool
    transaction: Optional[TransactionResponse] = None
