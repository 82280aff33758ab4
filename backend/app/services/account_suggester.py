"""
GL-Account Suggester

Proposes an expense account for a line item. First hit wins:
1. learned vendor mapping for the exact description ("vendor::description")
2. learned vendor mapping whose description is contained in this description
3. learned global keyword contained in the description
4. static keyword table matched against cached account names
5. first cached expense account, else '' (unassigned)
"""
import logging
import re
from typing import Dict, List, Optional

from app.schemas.invoice import ExtractedInvoice, LineItem
from app.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

COMPOSITE_SEPARATOR = "::"

# Ordered: specific categories before the generic "fee"
ACCOUNT_KEYWORDS = [
    ("software", ["software", "subscription", "license", "saas"]),
    ("shipping", ["shipping", "freight", "delivery", "ship"]),
    ("credit card", ["credit card", "cc", "payment processing"]),
    ("minimum", ["minimum", "min"]),
    ("sticker", ["sticker", "label", "packaging"]),
    ("fee", ["fee", "charge", "service"]),
]


def normalize_key(text: Optional[str]) -> str:
    if not text:
        return ''
    return ' '.join(text.lower().split())


def composite_key(vendor_name: str, description: str) -> str:
    return f"{normalize_key(vendor_name)}{COMPOSITE_SEPARATOR}{normalize_key(description)}"


def first_keyword(description: Optional[str]) -> Optional[str]:
    """First description word longer than 3 letters"""
    words = re.sub(r'[^a-z\s]', '', (description or '').lower()).split()
    for word in words:
        if len(word) > 3:
            return word
    return None


def _contains_term(text: str, term: str) -> bool:
    """Substring match; two-letter terms such as "cc" must stand alone"""
    if len(term) <= 2:
        return re.search(r'\b' + re.escape(term) + r'\b', text) is not None
    return term in text


class AccountSuggester:
    def __init__(self, store: LedgerStore):
        self.store = store
        self._mapping_cache: Optional[Dict[str, str]] = None
        self._account_cache = None

    def _mappings(self) -> Dict[str, str]:
        if self._mapping_cache is None:
            self._mapping_cache = self.store.get_mappings()
        return self._mapping_cache

    def _accounts(self):
        if self._account_cache is None:
            self._account_cache = self.store.get_cached_accounts()
        return self._account_cache

    def suggest(self, description: Optional[str], vendor_name: Optional[str] = None) -> str:
        desc = normalize_key(description)
        vendor = normalize_key(vendor_name)
        mappings = self._mappings()

        if vendor and desc:
            exact = mappings.get(f"{vendor}{COMPOSITE_SEPARATOR}{desc}")
            if exact:
                return exact

            prefix = f"{vendor}{COMPOSITE_SEPARATOR}"
            for key, account_id in mappings.items():
                if key.startswith(prefix):
                    learned_description = key[len(prefix):]
                    if learned_description and learned_description in desc:
                        return account_id

        if desc:
            for key, account_id in mappings.items():
                if COMPOSITE_SEPARATOR not in key and key and key in desc:
                    return account_id

        accounts = self._accounts()

        if desc:
            for category, terms in ACCOUNT_KEYWORDS:
                if not any(_contains_term(desc, term) for term in terms):
                    continue
                for account in accounts:
                    account_name = (account.account_name or '').lower()
                    if _contains_term(account_name, category) or any(_contains_term(account_name, t) for t in terms):
                        return account.account_id

        for account in accounts:
            if 'expense' in (account.account_type or '').lower() or 'expense' in (account.account_name or '').lower():
                return account.account_id

        return ''

    def account_name(self, account_id: Optional[str]) -> Optional[str]:
        if not account_id:
            return None
        for account in self._accounts():
            if account.account_id == account_id:
                return account.account_name
        return None

    def suggest_for_invoice(self, invoice: ExtractedInvoice) -> ExtractedInvoice:
        """Fill accountId / accountName on line items that have no account yet"""
        for item in invoice.line_items:
            if not item.account_id:
                item.account_id = self.suggest(item.description, invoice.vendor_name) or None
            if item.account_id and not item.account_name:
                item.account_name = self.account_name(item.account_id)
        return invoice

    def learn(self, vendor_name: Optional[str], line_items: List[LineItem]) -> int:
        """
        Remember the accounts chosen for an uploaded bill.

        Writes the vendor composite key (checked first next time) and a coarse
        global keyword for each line item that has both a description and an account.

        Returns:
            Number of mappings written
        """
        written = 0
        vendor = normalize_key(vendor_name)
        for item in line_items:
            if not item.description or not item.account_id:
                continue
            if vendor:
                self.store.save_mapping(composite_key(vendor, item.description), item.account_id, commit=False)
                written += 1
            keyword = first_keyword(item.description)
            if keyword:
                self.store.save_mapping(keyword, item.account_id, commit=False)
                written += 1
        self.store.commit()
        self._mapping_cache = None
        if written:
            logger.info(f"Learned {written} account mappings for vendor '{vendor_name}'")
        return written
