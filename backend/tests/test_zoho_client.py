import asyncio
import json

import httpx
import pytest

from app.schemas.vendor import VendorDetails
from app.services.exceptions import (
    AttachmentError,
    AuthExpiredError,
    BillValidationError,
    DuplicateBillError,
    VendorResolutionError,
    ZohoAPIError,
)
from app.services.zoho_client import ZohoBooksClient


def _client(config, handler):
    return ZohoBooksClient(config, transport=httpx.MockTransport(handler))


def test_requests_carry_org_and_oauth_header(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"contacts": [{"contact_id": "1", "contact_name": "ACME"}]})

    contacts = asyncio.run(_client(config, handler).search_contacts({"contact_name": "ACME"}))

    assert contacts[0]["contact_id"] == "1"
    request = seen[0]
    assert request.url.path == "/books/v3/contacts"
    assert request.url.params["organization_id"] == "org-1"
    assert request.url.params["contact_name"] == "ACME"
    assert request.headers["Authorization"] == "Zoho-oauthtoken token-1"


def test_create_bill_sends_json_string_form(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"code": 0, "bill": {"bill_id": "b-9"}})

    bill = asyncio.run(_client(config, handler).create_bill({"vendor_id": "v-1", "bill_number": "INV-1"}))

    assert bill["bill_id"] == "b-9"
    body = httpx.QueryParams(seen[0].content.decode())
    assert json.loads(body["JSONString"])["bill_number"] == "INV-1"


@pytest.mark.parametrize(
    "status, error",
    [
        (401, AuthExpiredError),
        (409, DuplicateBillError),
        (400, BillValidationError),
        (500, ZohoAPIError),
    ],
)
def test_create_bill_error_mapping(config, status, error):
    def handler(request):
        return httpx.Response(status, json={"code": 1, "message": "rejected"})

    with pytest.raises(error) as exc_info:
        asyncio.run(_client(config, handler).create_bill({"vendor_id": "v-1"}))
    assert exc_info.value.status_code == status


def test_duplicate_message_includes_zoho_reason(config):
    def handler(request):
        return httpx.Response(409, json={"message": "This bill number already exists"})

    with pytest.raises(DuplicateBillError, match="Duplicate detected: This bill number already exists"):
        asyncio.run(_client(config, handler).create_bill({"vendor_id": "v-1"}))


def test_vendor_creation_400_is_vendor_error(config):
    def handler(request):
        return httpx.Response(400, json={"message": "Contact name already exists"})

    with pytest.raises(VendorResolutionError):
        asyncio.run(_client(config, handler).create_vendor(VendorDetails(name="ACME")))


def test_create_vendor_payload(config):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(201, json={"contact": {"contact_id": "v-5", "contact_name": "ACME"}})

    details = VendorDetails(name="ACME", email="ap@acme.test", currency="USD")
    contact = asyncio.run(_client(config, handler).create_vendor(details))

    assert contact["contact_id"] == "v-5"
    assert seen[0]["contact_type"] == "vendor"
    assert seen[0]["contact_persons"][0]["email"] == "ap@acme.test"
    assert seen[0]["currency_code"] == "USD"


def test_attachment_failure_is_attachment_error(config):
    def handler(request):
        return httpx.Response(500, text="storage down")

    with pytest.raises(AttachmentError):
        asyncio.run(_client(config, handler).attach_file("b-1", "inv.pdf", b"%PDF"))


def test_network_failure_is_api_error(config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ZohoAPIError, match="Network error"):
        asyncio.run(_client(config, handler).list_accounts())


def test_unconfigured_client_fails_before_request(config):
    config.access_token = None

    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ZohoAPIError, match="not configured"):
        asyncio.run(_client(config, handler).list_accounts())


def test_list_expense_accounts_filters_types(config):
    def handler(request):
        return httpx.Response(200, json={"chartofaccounts": [
            {"account_id": "1", "account_name": "Office", "account_type": "expense"},
            {"account_id": "2", "account_name": "Cash", "account_type": "cash"},
            {"account_id": "3", "account_name": "COGS", "account_type": "cost_of_goods_sold"},
        ]})

    accounts = asyncio.run(_client(config, handler).list_expense_accounts())

    assert [a["account_id"] for a in accounts] == ["1", "3"]
