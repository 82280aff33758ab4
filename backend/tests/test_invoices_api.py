from decimal import Decimal

from app.models.transaction import Transaction
from app.services.exceptions import ExtractionError

from conftest import auth_expired, make_invoice

PDF = ("invoice.pdf", b"%PDF-1.4 fake", "application/pdf")


def _extract(client):
    response = client.post("/api/invoices/extract", files={"file": PDF})
    assert response.status_code == 200
    return response.json()


def test_extract_adds_queue_item(client, extractor):
    item = _extract(client)

    assert item["status"] == "extracted"
    assert item["invoice"]["vendorName"] == "Acme Supplies"
    assert extractor.calls == ["invoice.pdf"]
    assert [i["id"] for i in client.get("/api/invoices/queue").json()] == [item["id"]]


def test_non_pdf_is_rejected(client):
    response = client.post("/api/invoices/extract", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400


def test_extraction_failure_leaves_item_in_error(client, extractor, db_session):
    extractor.error = ExtractionError("Failed to parse extracted data")

    item = _extract(client)

    assert item["status"] == "error"
    assert item["error"] == "Failed to parse extracted data"
    assert db_session.query(Transaction).count() == 0


def test_edit_recomputes_totals(client):
    item = _extract(client)
    invoice = item["invoice"]
    invoice["lineItems"][0]["quantity"] = 2

    response = client.put(f"/api/invoices/queue/{item['id']}", json={"invoice": invoice})

    assert response.status_code == 200
    assert response.json()["invoice"]["subtotal"] == 200.0
    assert response.json()["invoice"]["total"] == 213.0


def test_upload_flow_end_to_end(client, zoho, token_service, db_session):
    item = _extract(client)
    zoho.bill_failures = [auth_expired()]

    response = client.post(f"/api/invoices/queue/{item['id']}/upload", json={})

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    assert token_service.refreshes == 1
    transactions = client.get("/api/transactions").json()
    assert transactions["total"] == 1
    assert transactions["items"][0]["external_bill_id"] == response.json()["external_bill_id"]


def test_flagged_duplicate_needs_acknowledgement(client, db_session):
    db_session.add(Transaction(vendor_name="Acme Supplies", invoice_number="INV-001",
                               total_amount=Decimal("113.00"), status="success"))
    db_session.commit()
    item = _extract(client)
    assert item["duplicate_of"] is not None

    blocked = client.post(f"/api/invoices/queue/{item['id']}/upload", json={})
    allowed = client.post(f"/api/invoices/queue/{item['id']}/upload", json={"proceed_if_duplicate": True})

    assert blocked.status_code == 409
    assert allowed.json()["status"] == "success"


def test_vendor_confirmation_flow(client, zoho, extractor):
    extractor.invoice.vendor_name = "Fresh Vendor"
    item = _extract(client)

    pending = client.post(f"/api/invoices/queue/{item['id']}/upload", json={}).json()
    assert pending["status"] == "pending_vendor"
    assert pending["suggested_vendor"] == "FRESH VENDOR"

    confirmed = client.post(
        f"/api/invoices/queue/{item['id']}/vendor/confirm",
        json={"name": "Fresh Vendor", "email": "billing@fresh.test"}
    ).json()

    assert confirmed["status"] == "success"
    assert zoho.created_vendors[0].name == "FRESH VENDOR"


def test_vendor_cancel_flow(client, extractor, db_session):
    extractor.invoice.vendor_name = "Fresh Vendor"
    item = _extract(client)
    client.post(f"/api/invoices/queue/{item['id']}/upload", json={})

    cancelled = client.post(f"/api/invoices/queue/{item['id']}/vendor/cancel").json()

    assert cancelled["status"] == "pending_vendor"
    assert "Vendor creation cancelled" in cancelled["warnings"]
    assert db_session.query(Transaction).count() == 0


def test_batch_upload_of_selected_items(client):
    first = _extract(client)
    second = _extract(client)
    client.patch(f"/api/invoices/queue/{first['id']}/selection", json={"selected": True})

    response = client.post("/api/invoices/queue/upload-batch", json={})

    assert response.json()["results"]["success"] == 1
    statuses = {i["id"]: i["status"] for i in client.get("/api/invoices/queue").json()}
    assert statuses == {first["id"]: "success", second["id"]: "extracted"}


def test_remove_queue_item(client):
    item = _extract(client)

    assert client.delete(f"/api/invoices/queue/{item['id']}").status_code == 200
    assert client.get(f"/api/invoices/queue/{item['id']}").status_code == 404


def test_notes_only_edit_keeps_extracted_totals(client, extractor):
    extractor.invoice = make_invoice(lineItems=[{"description": "Consulting", "amount": 100}])
    item = _extract(client)
    invoice = item["invoice"]
    invoice["notes"] = "Approved by ops"

    response = client.put(f"/api/invoices/queue/{item['id']}", json={"invoice": invoice})

    body = response.json()
    assert response.status_code == 200
    assert body["invoice"]["subtotal"] == 100.0
    assert body["invoice"]["total"] == 113.0
    assert body["warnings"] == []
