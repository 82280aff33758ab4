"""
Transaction Query - filtered, paginated reads over the ledger and CSV export.
"""
import csv
import io
from datetime import datetime, time, timedelta
from typing import Iterable, List, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from app.models.transaction import Transaction
from app.schemas.transaction import TransactionFilters

CSV_COLUMNS = [
    "Date", "Time", "Vendor", "Invoice#", "InvoiceDate",
    "Amount", "Currency", "Status", "ExternalBillId", "Error",
]

MAX_PAGE_SIZE = 200


def build_query(db: Session, filters: TransactionFilters) -> Query:
    query = db.query(Transaction)

    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        query = query.filter(or_(
            Transaction.vendor_name.ilike(pattern),
            Transaction.invoice_number.ilike(pattern),
            Transaction.file_name.ilike(pattern),
        ))
    if filters.status:
        query = query.filter(Transaction.status == filters.status)
    if filters.date_from:
        query = query.filter(Transaction.processed_at >= datetime.combine(filters.date_from, time.min))
    if filters.date_to:
        # Inclusive of the whole end day
        end = datetime.combine(filters.date_to + timedelta(days=1), time.min)
        query = query.filter(Transaction.processed_at < end)
    if filters.min_amount is not None:
        query = query.filter(Transaction.total_amount >= filters.min_amount)
    if filters.max_amount is not None:
        query = query.filter(Transaction.total_amount <= filters.max_amount)

    return query.order_by(Transaction.processed_at.desc(), Transaction.id.desc())


def query_transactions(
    db: Session,
    filters: TransactionFilters,
    page: int = 1,
    page_size: int = 50
) -> Tuple[List[Transaction], int]:
    """
    Returns:
        (transactions on the requested page, total matching rows)
    """
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    query = build_query(db, filters)
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total


def export_csv(transactions: Iterable[Transaction]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for transaction in transactions:
        processed_at = transaction.processed_at
        writer.writerow([
            processed_at.strftime("%Y-%m-%d") if processed_at else '',
            processed_at.strftime("%H:%M:%S") if processed_at else '',
            transaction.vendor_name or '',
            transaction.invoice_number or '',
            transaction.invoice_date or '',
            f"{transaction.total_amount:.2f}" if transaction.total_amount is not None else '',
            transaction.currency or '',
            transaction.status,
            transaction.external_bill_id or '',
            transaction.error_message or '',
        ])
    return buffer.getvalue()
