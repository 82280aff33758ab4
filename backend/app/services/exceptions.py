"""
Error taxonomy for invoice processing.

Every failure that can end an upload attempt derives from InvoiceProcessingError so the
orchestrator can turn it into a human-readable message and an error Transaction.
"""
from typing import Optional


class InvoiceProcessingError(Exception):
    """Base class for failures surfaced to the user"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        return self.message


class ExtractionError(InvoiceProcessingError):
    """Extraction call failed or returned unparseable JSON"""


class VendorResolutionError(InvoiceProcessingError):
    """Vendor could not be found or created"""


class AuthExpiredError(InvoiceProcessingError):
    """Zoho returned 401 - the access token is expired or invalid"""


class DuplicateBillError(InvoiceProcessingError):
    """Zoho returned 409 - a bill with this number already exists for the vendor"""


class BillValidationError(InvoiceProcessingError):
    """Zoho returned 400 - the bill payload was rejected"""


class AttachmentError(InvoiceProcessingError):
    """Attaching the original file to a created bill failed (non-fatal)"""


class TokenRefreshError(InvoiceProcessingError):
    """Refresh-token grant failed or credentials are missing"""


class ZohoAPIError(InvoiceProcessingError):
    """Any other non-2xx response or network failure talking to Zoho"""


class InvalidTransitionError(Exception):
    """Illegal upload queue state transition"""
