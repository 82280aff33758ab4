"""
Accounts Router - chart-of-accounts cache, GL suggestions and learned mappings
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_orchestrator
from app.schemas.account import (
    AccountMappingResponse,
    AccountMappingUpdate,
    AccountResponse,
    AccountSuggestRequest,
    AccountSuggestResponse,
)
from app.services.account_suggester import AccountSuggester, normalize_key
from app.services.exceptions import InvoiceProcessingError
from app.services.ledger_store import LedgerStore
from app.services.upload_orchestrator import UploadOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=List[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    """Cached expense accounts, in the order Zoho returned them"""
    return LedgerStore(db).get_cached_accounts()


@router.post("/refresh", response_model=List[AccountResponse])
async def refresh_accounts(
    db: Session = Depends(get_db),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator)
):
    """Re-fetch the chart of accounts from Zoho Books and replace the cache"""
    try:
        accounts = await orchestrator.call_with_token_refresh(orchestrator.zoho.list_expense_accounts)
    except InvoiceProcessingError as e:
        orchestrator.activity_log.error(f"Failed to load accounts: {e.message}")
        raise HTTPException(status_code=e.status_code or 502, detail=e.message)

    store = LedgerStore(db)
    count = store.replace_cached_accounts(accounts)
    orchestrator.activity_log.success(f"Loaded {count} expense accounts")
    return store.get_cached_accounts()


@router.post("/suggest", response_model=AccountSuggestResponse)
def suggest_account(request: AccountSuggestRequest, db: Session = Depends(get_db)):
    suggester = AccountSuggester(LedgerStore(db))
    account_id = suggester.suggest(request.description, request.vendor_name)
    return AccountSuggestResponse(account_id=account_id, account_name=suggester.account_name(account_id))


@router.get("/mappings", response_model=List[AccountMappingResponse])
def list_mappings(db: Session = Depends(get_db)):
    mappings = LedgerStore(db).get_mappings()
    return [AccountMappingResponse(key=key, account_id=account_id) for key, account_id in sorted(mappings.items())]


@router.put("/mappings", response_model=AccountMappingResponse)
def save_mapping(update: AccountMappingUpdate, db: Session = Depends(get_db)):
    """Set a mapping by hand. Keys are stored normalized; composite keys keep their separator"""
    key = "::".join(normalize_key(part) for part in update.key.split("::"))
    if not key.strip(":") or not update.account_id:
        raise HTTPException(status_code=400, detail="Both key and account_id are required")
    LedgerStore(db).save_mapping(key, update.account_id)
    return AccountMappingResponse(key=key, account_id=update.account_id)
