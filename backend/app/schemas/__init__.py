from app.schemas.invoice import ExtractedInvoice, LineItem
from app.schemas.transaction import TransactionFilters, TransactionResponse, TransactionListResponse
from app.schemas.settings import IntegrationConfig, IntegrationConfigUpdate, IntegrationConfigResponse
from app.schemas.vendor import VendorDetails, VendorMatchCandidate, VendorResolution

__all__ = [
    "ExtractedInvoice",
    "LineItem",
    "TransactionFilters",
    "TransactionResponse",
    "TransactionListResponse",
    "IntegrationConfig",
    "IntegrationConfigUpdate",
    "IntegrationConfigResponse",
    "VendorDetails",
    "VendorMatchCandidate",
    "VendorResolution",
]
