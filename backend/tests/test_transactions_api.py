import csv
import io
from datetime import datetime
from decimal import Decimal

from app.models.transaction import Transaction
from app.services.ledger_store import LedgerStore

from conftest import make_invoice


def _add(db, **kwargs):
    values = {
        "vendor_name": "Acme Supplies",
        "invoice_number": "INV-1",
        "invoice_date": "2025-03-01",
        "total_amount": Decimal("100.00"),
        "currency": "CAD",
        "status": "success",
        "file_name": "inv.pdf",
        "processed_at": datetime(2025, 3, 2, 10, 30),
    }
    values.update(kwargs)
    transaction = Transaction(**values)
    db.add(transaction)
    db.commit()
    return transaction


def test_list_is_newest_first_and_paginated(client, db_session):
    for day in range(1, 6):
        _add(db_session, invoice_number=f"INV-{day}", processed_at=datetime(2025, 3, day, 9, 0))

    response = client.get("/api/transactions", params={"page": 2, "page_size": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 5
    assert [t["invoice_number"] for t in body["items"]] == ["INV-3", "INV-2"]


def test_filters(client, db_session):
    _add(db_session, vendor_name="Acme Supplies", status="success", total_amount=Decimal("50.00"),
         processed_at=datetime(2025, 1, 10, 12, 0))
    _add(db_session, vendor_name="Globex", invoice_number="G-9", status="error",
         total_amount=Decimal("500.00"), processed_at=datetime(2025, 2, 10, 12, 0))

    def numbers(**params):
        return [t["invoice_number"] for t in client.get("/api/transactions", params=params).json()["items"]]

    assert numbers(search="glob") == ["G-9"]
    assert numbers(status="success") == ["INV-1"]
    assert numbers(date_from="2025-02-01") == ["G-9"]
    assert numbers(date_to="2025-01-10") == ["INV-1"]
    assert numbers(min_amount=100) == ["G-9"]
    assert numbers(max_amount=100) == ["INV-1"]


def test_get_single_transaction(client, db_session):
    transaction = _add(db_session)

    response = client.get(f"/api/transactions/{transaction.id}")

    assert response.status_code == 200
    assert response.json()["vendor_name"] == "Acme Supplies"
    assert client.get("/api/transactions/999").status_code == 404


def test_csv_export(client, db_session):
    _add(db_session, invoice_number="INV-1")
    _add(db_session, invoice_number="INV-2", status="error", error_message="Failed to create bill")

    response = client.get("/api/transactions/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == ["Date", "Time", "Vendor", "Invoice#", "InvoiceDate", "Amount",
                       "Currency", "Status", "ExternalBillId", "Error"]
    assert len(rows) == 3
    assert rows[1][5] == "100.00"


def test_clear_transactions(client, db_session):
    _add(db_session)
    _add(db_session)

    response = client.delete("/api/transactions")

    assert response.json() == {"deleted": 2}
    assert db_session.query(Transaction).count() == 0


def test_check_duplicate(client, db_session):
    _add(db_session, total_amount=Decimal("113.00"), invoice_number="INV-001")
    payload = {"vendorName": "ACME SUPPLIES", "invoiceNumber": "INV-001", "total": 113.0}

    response = client.post("/api/transactions/check-duplicate", json=payload)

    assert response.json()["duplicate"] is True
    payload["invoiceNumber"] = "INV-002"
    assert client.post("/api/transactions/check-duplicate", json=payload).json()["duplicate"] is False


def test_recorded_transaction_round_trips(client, db_session):
    recorded = LedgerStore(db_session).record_transaction(
        make_invoice(total=1234.56, currency="USD"), "success", file_name="inv.pdf", external_bill_id="b-77"
    )

    item = client.get("/api/transactions").json()["items"][0]

    assert item["id"] == recorded.id
    assert item["status"] == "success"
    assert Decimal(str(item["total_amount"])) == Decimal("1234.56")
    assert item["currency"] == "USD"
    assert item["external_bill_id"] == "b-77"
    assert item["extracted_data"]["invoiceNumber"] == "INV-001"


def test_csv_export_follows_filters(client, db_session):
    _add(db_session, status="success")
    _add(db_session, status="success")
    _add(db_session, status="error")

    listed = client.get("/api/transactions", params={"status": "success"}).json()["total"]
    rows = list(csv.reader(io.StringIO(client.get("/api/transactions/export", params={"status": "success"}).text)))

    assert len(rows) - 1 == listed == 2
