import pytest

from app.schemas.invoice import ExtractedInvoice, to_number

from conftest import make_invoice


@pytest.mark.parametrize(
    "value, expected",
    [("$1,234.50", 1234.5), (12, 12.0), ("", None), (None, None), ("n/a", None), (True, None)],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_missing_fields_are_tolerated():
    invoice = ExtractedInvoice.from_extraction({"vendorName": "  ", "lineItems": None})

    assert invoice.vendor_name is None
    assert invoice.line_items == []


def test_non_object_is_rejected():
    with pytest.raises(ValueError):
        ExtractedInvoice.from_extraction(["not", "an", "object"])


def test_serializes_camel_case():
    data = make_invoice().model_dump(by_alias=True)

    assert data["vendorName"] == "Acme Supplies"
    assert data["lineItems"][0]["description"] == "Shipping charge"


def test_recompute_totals_from_line_items():
    invoice = make_invoice(tax=5, lineItems=[
        {"description": "a", "quantity": 2, "rate": 10},
        {"description": "b", "quantity": 1, "rate": 3.5},
    ])

    invoice.recompute_totals()

    assert invoice.subtotal == 23.5
    assert invoice.total == 28.5


def test_consistent_invoice_has_no_warnings():
    assert make_invoice().consistency_warnings() == []


def test_inconsistent_totals_warn():
    invoice = make_invoice(total=120.0)

    warnings = invoice.consistency_warnings()

    assert len(warnings) == 1
    assert "does not equal" in warnings[0]


def test_line_without_quantity_or_rate_counts_its_amount():
    invoice = make_invoice(lineItems=[
        {"description": "Consulting", "amount": 100},
        {"description": "Parts", "quantity": 2, "rate": 5, "amount": 10},
    ])

    invoice.recompute_totals()

    assert invoice.subtotal == 110.0
    assert invoice.total == 123.0
