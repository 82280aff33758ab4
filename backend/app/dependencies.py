"""
FastAPI dependencies - build per-request components around the persisted integration config.

The config object is loaded once per request and shared, so a token refreshed by
TokenService is seen by the ZohoBooksClient of the same request.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.settings import IntegrationConfig
from app.services.account_suggester import AccountSuggester
from app.services.activity_log_service import ActivityLogService
from app.services.config_store import ConfigStore
from app.services.extraction_service import ExtractionService, get_extraction_service
from app.services.ledger_store import LedgerStore
from app.services.storage_service import storage_service
from app.services.token_service import TokenService
from app.services.upload_orchestrator import UploadOrchestrator
from app.services.upload_queue import UploadQueue, upload_queue
from app.services.vendor_resolver import VendorResolver
from app.services.zoho_client import ZohoBooksClient


def get_integration_config(db: Session = Depends(get_db)) -> IntegrationConfig:
    return ConfigStore(db).load()


def get_storage():
    return storage_service


def get_queue() -> UploadQueue:
    return upload_queue


def get_extractor() -> ExtractionService:
    return get_extraction_service()


def get_zoho_client(config: IntegrationConfig = Depends(get_integration_config)) -> ZohoBooksClient:
    return ZohoBooksClient(config)


def get_token_service(
    db: Session = Depends(get_db),
    config: IntegrationConfig = Depends(get_integration_config)
) -> TokenService:
    return TokenService(config, config_store=ConfigStore(db))


def get_orchestrator(
    db: Session = Depends(get_db),
    config: IntegrationConfig = Depends(get_integration_config),
    zoho_client=Depends(get_zoho_client),
    token_service=Depends(get_token_service),
    storage=Depends(get_storage)
) -> UploadOrchestrator:
    store = LedgerStore(db)
    return UploadOrchestrator(
        config=config,
        zoho_client=zoho_client,
        vendor_resolver=VendorResolver(zoho_client),
        account_suggester=AccountSuggester(store),
        ledger=store,
        activity_log=ActivityLogService(db),
        token_service=token_service,
        storage=storage
    )
