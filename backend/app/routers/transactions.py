from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.invoice import ExtractedInvoice
from app.schemas.transaction import (
    DuplicateCheckResponse,
    TransactionFilters,
    TransactionListResponse,
    TransactionResponse,
)
from app.services.activity_log_service import ActivityLogService
from app.services.duplicate_detector import find_duplicate
from app.services.ledger_store import LedgerStore
from app.services.transaction_query import build_query, export_csv, query_transactions

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def get_filters(
    search: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None
) -> TransactionFilters:
    return TransactionFilters(
        search=search,
        status=status,
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    filters: TransactionFilters = Depends(get_filters),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """List recorded upload outcomes, newest first"""
    items, total = query_transactions(db, filters, page=page, page_size=page_size)
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in items],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/export")
def export_transactions(
    filters: TransactionFilters = Depends(get_filters),
    db: Session = Depends(get_db)
):
    """Export the filtered view (all pages) as CSV"""
    content = export_csv(build_query(db, filters).all())
    filename = f"transactions_{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/check-duplicate", response_model=DuplicateCheckResponse)
def check_duplicate(invoice: ExtractedInvoice, db: Session = Depends(get_db)):
    match = find_duplicate(invoice, LedgerStore(db).list_transactions())
    if not match:
        return DuplicateCheckResponse(duplicate=False)
    return DuplicateCheckResponse(duplicate=True, transaction=TransactionResponse.model_validate(match))


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    transaction = LedgerStore(db).get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.delete("")
def clear_transactions(db: Session = Depends(get_db)):
    """Delete every transaction"""
    deleted = LedgerStore(db).clear_transactions()
    ActivityLogService(db).info(f"Cleared {deleted} transaction(s) from history")
    return {"deleted": deleted}
