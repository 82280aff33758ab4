"""
Integration configuration schemas.

IntegrationConfig is the single global credentials record. It is loaded from the
app_settings table and passed explicitly to every component that talks to Zoho.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.config import settings


class IntegrationConfig(BaseModel):
    api_domain: str = settings.zoho_default_api_domain
    organization_id: Optional[str] = None
    access_token: Optional[str] = None
    access_token_expires_at: Optional[datetime] = None
    refresh_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    # Optional document store integration (inbox / processed / failed folders)
    document_store_enabled: bool = False
    inbox_folder: str = "inbox"
    processed_folder: str = "processed"
    failed_folder: str = "failed"

    def is_configured(self) -> bool:
        return bool(self.organization_id and self.access_token)

    def can_refresh(self) -> bool:
        return bool(self.refresh_token and self.client_id and self.client_secret)


SECRET_FIELDS = ("access_token", "refresh_token", "client_secret")


class IntegrationConfigUpdate(BaseModel):
    """Partial update; fields left as None are not changed"""
    api_domain: Optional[str] = None
    organization_id: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    document_store_enabled: Optional[bool] = None
    inbox_folder: Optional[str] = None
    processed_folder: Optional[str] = None
    failed_folder: Optional[str] = None


class IntegrationConfigResponse(BaseModel):
    api_domain: str
    organization_id: Optional[str]
    access_token: Optional[str]
    access_token_expires_at: Optional[datetime]
    refresh_token: Optional[str]
    client_id: Optional[str]
    client_secret: Optional[str]
    document_store_enabled: bool
    inbox_folder: str
    processed_folder: str
    failed_folder: str
    configured: bool
    can_refresh: bool

    @classmethod
    def from_config(cls, config: IntegrationConfig) -> "IntegrationConfigResponse":
        data = config.model_dump()
        for field in SECRET_FIELDS:
            if data.get(field):
                data[field] = _mask(data[field])
        return cls(**data, configured=config.is_configured(), can_refresh=config.can_refresh())


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"
