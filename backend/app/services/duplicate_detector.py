"""Probable-duplicate check against previously recorded transactions (warning only)"""
from typing import Iterable, Optional

from app.models.transaction import Transaction
from app.schemas.invoice import ExtractedInvoice

AMOUNT_TOLERANCE = 0.01


def find_duplicate(extracted: ExtractedInvoice, history: Iterable[Transaction]) -> Optional[Transaction]:
    """
    Return the first prior transaction with the same vendor (case-insensitive),
    the same invoice number (exact) and an amount within 0.01, else None.
    """
    vendor = (extracted.vendor_name or '').lower()
    if not vendor or not extracted.invoice_number or extracted.total is None:
        return None

    for transaction in history:
        if (transaction.vendor_name or '').lower() != vendor:
            continue
        if transaction.invoice_number != extracted.invoice_number:
            continue
        if transaction.total_amount is None:
            continue
        if abs(float(transaction.total_amount) - extracted.total) < AMOUNT_TOLERANCE:
            return transaction
    return None
