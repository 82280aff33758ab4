"""
Invoice schemas - the structured record produced by extraction and edited during review.

Field names follow the extraction contract (camelCase on the wire); snake_case is accepted too.
"""
import re
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

AMOUNT_TOLERANCE = 0.01


def to_number(value) -> Optional[float]:
    """Coerce an extracted numeric value ("$1,234.50", 12, None) to float or None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r'[^0-9.\-]', '', value)
        if cleaned in ('', '-', '.', '-.'):
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def _to_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class LineItem(BaseModel):
    description: Optional[str] = None
    quantity: Optional[float] = None
    rate: Optional[float] = None
    amount: Optional[float] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None  # Searchable account label shown next to the account id

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("quantity", "rate", "amount", mode="before")
    @classmethod
    def _coerce_number(cls, value):
        return to_number(value)

    @field_validator("description", "account_id", "account_name", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return _to_text(value)

    def line_total(self) -> float:
        if self.quantity is None or self.rate is None:
            return self.amount or 0
        return self.quantity * self.rate


class ExtractedInvoice(BaseModel):
    vendor_name: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    reference_number: Optional[str] = None
    currency: Optional[str] = None
    subtotal: Optional[float] = None
    tax: Optional[float] = None
    total: Optional[float] = None
    notes: Optional[str] = None
    line_items: List[LineItem] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("subtotal", "tax", "total", mode="before")
    @classmethod
    def _coerce_number(cls, value):
        return to_number(value)

    @field_validator(
        "vendor_name", "invoice_number", "invoice_date", "due_date",
        "reference_number", "currency", "notes",
        mode="before"
    )
    @classmethod
    def _coerce_text(cls, value):
        return _to_text(value)

    @field_validator("line_items", mode="before")
    @classmethod
    def _coerce_line_items(cls, value):
        if value is None:
            return []
        return [item for item in value if isinstance(item, (dict, LineItem))]

    @classmethod
    def from_extraction(cls, raw: dict) -> "ExtractedInvoice":
        """
        Validate the raw JSON returned by the extraction call.

        Any field may be missing or null; numeric strings are coerced.
        Raises ValueError if the payload is not a JSON object.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Extraction result must be a JSON object, got {type(raw).__name__}")
        return cls.model_validate(raw)

    def recompute_totals(self) -> None:
        """Recalculate subtotal and total from the line items (quantity x rate) and tax"""
        subtotal = sum(item.line_total() for item in self.line_items)
        self.subtotal = round(subtotal, 2)
        self.total = round(subtotal + (self.tax or 0), 2)

    def consistency_warnings(self) -> List[str]:
        """Human-readable warnings for totals that do not add up. Never blocking."""
        warnings = []
        if self.subtotal is not None and self.total is not None:
            expected = self.subtotal + (self.tax or 0)
            if abs(expected - self.total) >= AMOUNT_TOLERANCE:
                warnings.append(
                    f"Total {self.total:.2f} does not equal subtotal {self.subtotal:.2f} + tax {(self.tax or 0):.2f}"
                )
        amounts = [item.amount for item in self.line_items if item.amount is not None]
        if self.subtotal is not None and amounts:
            line_sum = sum(amounts)
            if abs(line_sum - self.subtotal) >= AMOUNT_TOLERANCE:
                warnings.append(
                    f"Line items sum to {line_sum:.2f} but subtotal is {self.subtotal:.2f}"
                )
        return warnings
