from conftest import auth_expired


class ExpiringAccountsDirectory:
    def __init__(self, zoho):
        self.zoho = zoho
        self.failed = False

    async def list_expense_accounts(self):
        if not self.failed:
            self.failed = True
            raise auth_expired()
        return await self.zoho.list_expense_accounts()


def test_refresh_replaces_cache(client, zoho):
    zoho.accounts = [
        {"account_id": "acc-1", "account_name": "Office Supplies", "account_type": "expense"},
        {"account_id": "acc-2", "account_name": "Freight", "account_type": "expense"},
    ]

    response = client.post("/api/accounts/refresh")

    assert response.status_code == 200
    assert [a["account_id"] for a in response.json()] == ["acc-1", "acc-2"]

    zoho.accounts = [{"account_id": "acc-3", "account_name": "Software", "account_type": "expense"}]
    client.post("/api/accounts/refresh")

    assert [a["account_id"] for a in client.get("/api/accounts").json()] == ["acc-3"]


def test_refresh_retries_after_token_refresh(client, zoho, token_service):
    from app.main import app
    from app import dependencies

    zoho.accounts = [{"account_id": "acc-1", "account_name": "Office", "account_type": "expense"}]
    app.dependency_overrides[dependencies.get_zoho_client] = lambda: ExpiringAccountsDirectory(zoho)

    response = client.post("/api/accounts/refresh")

    assert response.status_code == 200
    assert token_service.refreshes == 1


def test_suggest_and_mappings(client):
    client.put("/api/accounts/mappings", json={"key": "ACME :: Freight  Charge", "account_id": "acc-9"})

    mappings = client.get("/api/accounts/mappings").json()
    suggestion = client.post(
        "/api/accounts/suggest", json={"description": "freight charge", "vendor_name": "Acme"}
    ).json()

    assert mappings == [{"key": "acme::freight charge", "account_id": "acc-9"}]
    assert suggestion["account_id"] == "acc-9"


def test_suggest_without_accounts_is_unassigned(client):
    response = client.post("/api/accounts/suggest", json={"description": "Widgets"})

    assert response.json()["account_id"] == ""


def test_vendor_match_preview_never_creates(client, zoho):
    found = client.post("/api/vendors/match", json={"vendor_name": "Acme Supplies"}).json()
    missing = client.post("/api/vendors/match", json={"vendor_name": "Nobody Inc"}).json()

    assert found["found"] is True
    assert found["vendor_id"] == "v-1"
    assert missing["found"] is False
    assert missing["suggested_name"] == "NOBODY INC"
    assert zoho.created_vendors == []


def test_vendor_match_blank_name_is_bad_request(client, zoho):
    response = client.post("/api/vendors/match", json={"vendor_name": "   "})

    assert response.status_code == 400
    assert zoho.searches == []
