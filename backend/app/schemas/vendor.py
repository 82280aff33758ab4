from pydantic import BaseModel
from typing import Optional


class VendorDetails(BaseModel):
    """User-confirmed details for creating a new vendor in Zoho Books"""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    currency: Optional[str] = None


class VendorMatchCandidate(BaseModel):
    contact_id: str
    name: str
    score: float


class VendorResolution(BaseModel):
    found: bool
    vendor_id: Optional[str] = None
    matched_name: Optional[str] = None
    created: bool = False
    score: float = 0.0
    suggested_name: Optional[str] = None  # Set when not found, for the confirmation step


class VendorMatchRequest(BaseModel):
    vendor_name: str
