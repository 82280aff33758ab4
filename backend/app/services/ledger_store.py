"""
Ledger Store - persistence for transactions, learned account mappings and the
chart-of-accounts cache.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from sqlalchemy.orm import Session

from app.models.account_mapping import AccountMapping
from app.models.cached_account import CachedAccount
from app.models.transaction import Transaction
from app.schemas.invoice import ExtractedInvoice

logger = logging.getLogger(__name__)


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    # Transactions

    def record_transaction(
        self,
        invoice: ExtractedInvoice,
        status: str,
        file_name: Optional[str] = None,
        external_bill_id: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Transaction:
        if status not in ("success", "error"):
            raise ValueError(f"Invalid transaction status: {status}")

        transaction = Transaction(
            vendor_name=invoice.vendor_name,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            total_amount=Decimal(str(invoice.total)) if invoice.total is not None else None,
            currency=invoice.currency,
            status=status,
            external_bill_id=external_bill_id,
            error_message=error_message,
            file_name=file_name,
            extracted_data=invoice.model_dump(by_alias=True)
        )
        self.db.add(transaction)
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Recorded {status} transaction {transaction.id} for invoice {invoice.invoice_number}")
        return transaction

    def list_transactions(self) -> List[Transaction]:
        return self.db.query(Transaction).order_by(Transaction.id.asc()).all()

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self.db.query(Transaction).filter(Transaction.id == transaction_id).first()

    def clear_transactions(self) -> int:
        deleted = self.db.query(Transaction).delete()
        self.db.commit()
        logger.warning(f"Cleared {deleted} transactions")
        return deleted

    # Account mappings

    def get_mappings(self) -> Dict[str, str]:
        return {row.key: row.account_id for row in self.db.query(AccountMapping).all()}

    def save_mapping(self, key: str, account_id: str, commit: bool = True) -> None:
        """Upsert; later writes overwrite"""
        row = self.db.query(AccountMapping).filter(AccountMapping.key == key).first()
        if row:
            row.account_id = account_id
        else:
            self.db.add(AccountMapping(key=key, account_id=account_id))
            # Make the new key visible to the next lookup in the same batch
            self.db.flush()
        if commit:
            self.db.commit()

    def commit(self) -> None:
        self.db.commit()

    # Chart of accounts cache

    def get_cached_accounts(self) -> List[CachedAccount]:
        return self.db.query(CachedAccount).order_by(CachedAccount.position.asc()).all()

    def replace_cached_accounts(self, accounts: Iterable[Dict]) -> int:
        """Delete-all then insert"""
        self.db.query(CachedAccount).delete()
        count = 0
        seen = set()
        for account in accounts:
            account_id = account.get("account_id")
            if not account_id or account_id in seen:
                continue
            seen.add(account_id)
            self.db.add(CachedAccount(
                account_id=str(account_id),
                account_name=account.get("account_name") or '',
                account_type=account.get("account_type"),
                position=count
            ))
            count += 1
        self.db.commit()
        logger.info(f"Cached {count} accounts")
        return count
