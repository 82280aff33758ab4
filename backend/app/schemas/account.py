from pydantic import BaseModel
from typing import Optional


class AccountResponse(BaseModel):
    account_id: str
    account_name: str
    account_type: Optional[str]

    class Config:
        from_attributes = True


class AccountSuggestRequest(BaseModel):
    description: str
    vendor_name: Optional[str] = None


class AccountSuggestResponse(BaseModel):
    account_id: str  # Empty string when no account could be suggested
    account_name: Optional[str] = None


class AccountMappingResponse(BaseModel):
    key: str
    account_id: str


class AccountMappingUpdate(BaseModel):
    key: str
    account_id: str
