"""
Zoho Books REST client - contacts, bills, attachments and chart of accounts.

The client reads credentials from the injected IntegrationConfig on every request,
so a token refreshed by TokenService is picked up without rebuilding the client.
"""
import json
import logging
from typing import Dict, List, Optional, Type

import httpx

from app.config import settings
from app.schemas.settings import IntegrationConfig
from app.schemas.vendor import VendorDetails
from app.services.exceptions import (
    AttachmentError,
    AuthExpiredError,
    BillValidationError,
    DuplicateBillError,
    InvoiceProcessingError,
    VendorResolutionError,
    ZohoAPIError,
)

logger = logging.getLogger(__name__)

EXPENSE_ACCOUNT_TYPES = {"expense", "cost_of_goods_sold", "other_expense"}


def _error_message(response: httpx.Response) -> str:
    """Pull Zoho's error message out of a failed response"""
    try:
        data = response.json()
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
    except ValueError:
        pass
    return response.text[:500] if response.text else f"HTTP {response.status_code}"


class ZohoBooksClient:
    def __init__(
        self,
        config: IntegrationConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None
    ):
        self.config = config
        self.transport = transport
        self.timeout = timeout or settings.zoho_timeout_seconds

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: Optional[Dict] = None,
        bad_request_error: Type[InvoiceProcessingError] = ZohoAPIError,
        **kwargs
    ) -> Dict:
        if not self.config.is_configured():
            raise ZohoAPIError("Zoho Books is not configured. Set the organization ID and access token in Settings.")

        url = f"{self.config.api_domain.rstrip('/')}/books/v3/{path}"
        query = {"organization_id": self.config.organization_id}
        if params:
            query.update(params)
        headers = {"Authorization": f"Zoho-oauthtoken {self.config.access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, params=query, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ZohoAPIError(f"Network error while trying to {action}: {str(e)}")

        logger.debug(f"Zoho {method} {path} -> {response.status_code}")

        if response.status_code == 401:
            raise AuthExpiredError(
                "Access token expired or invalid. Please update your token in Settings.",
                status_code=401,
                details=response.text
            )
        if response.status_code == 409:
            raise DuplicateBillError(
                f"Duplicate detected: {_error_message(response)}",
                status_code=409,
                details=response.text
            )
        if response.status_code == 400:
            raise bad_request_error(
                f"Failed to {action}: {_error_message(response)}",
                status_code=400,
                details=response.text
            )
        if not response.is_success:
            raise ZohoAPIError(
                f"Failed to {action}: {_error_message(response)}",
                status_code=response.status_code,
                details=response.text
            )

        try:
            return response.json()
        except ValueError:
            raise ZohoAPIError(f"Failed to {action}: Zoho returned a non-JSON response")

    async def search_contacts(self, params: Dict[str, str]) -> List[Dict]:
        """Search contacts with one query strategy (contact_name=..., contact_name_contains=...)"""
        data = await self._request("GET", "contacts", "search vendors", params=params)
        return data.get("contacts") or []

    async def create_vendor(self, details: VendorDetails) -> Dict:
        payload: Dict = {
            "contact_name": details.name,
            "contact_type": "vendor",
        }
        if details.email or details.phone:
            contact_person = {"is_primary_contact": True}
            if details.email:
                contact_person["email"] = details.email
            if details.phone:
                contact_person["phone"] = details.phone
            payload["contact_persons"] = [contact_person]
        if details.address:
            payload["billing_address"] = {"address": details.address}
        if details.currency:
            payload["currency_code"] = details.currency

        data = await self._request(
            "POST", "contacts", "create vendor",
            json=payload, bad_request_error=VendorResolutionError
        )
        contact = data.get("contact")
        if not contact or not contact.get("contact_id"):
            raise VendorResolutionError(f"Failed to create vendor '{details.name}': no contact in response")
        return contact

    async def create_bill(self, bill_payload: Dict) -> Dict:
        data = await self._request(
            "POST", "bills", "create bill",
            data={"JSONString": json.dumps(bill_payload)},
            bad_request_error=BillValidationError
        )
        bill = data.get("bill")
        if not bill or not bill.get("bill_id"):
            raise ZohoAPIError("Failed to create bill: no bill in response", details=json.dumps(data)[:500])
        return bill

    async def attach_file(self, bill_id: str, filename: str, content: bytes) -> Dict:
        try:
            return await self._request(
                "POST", f"bills/{bill_id}/attachment", "attach file",
                files={"attachment": (filename, content, "application/pdf")}
            )
        except InvoiceProcessingError as e:
            raise AttachmentError(e.message, status_code=e.status_code, details=e.details)

    async def list_accounts(self) -> List[Dict]:
        data = await self._request("GET", "chartofaccounts", "fetch chart of accounts")
        return data.get("chartofaccounts") or []

    async def list_expense_accounts(self) -> List[Dict]:
        """Chart of accounts filtered to expense-type accounts"""
        accounts = await self.list_accounts()
        return [
            account for account in accounts
            if (account.get("account_type") or "").lower() in EXPENSE_ACCOUNT_TYPES
            or "expense" in (account.get("account_type") or "").lower()
        ]
