"""Error taxonomy for ledger operations.

Every error carries a human-readable message and the HTTP status the API
layer answers with. None of them are retried by the service layer.
"""

from fastapi import status


class SupplyLedgerError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SupplyLedgerError):
    """Malformed input, detected before any store access."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(SupplyLedgerError):
    status_code = status.HTTP_404_NOT_FOUND


class CustomerNotFound(NotFoundError):
    def __init__(self, customer_id: str):
        super().__init__(f"Customer not found: {customer_id}")
        self.customer_id = customer_id


class EntryNotFound(NotFoundError):
    def __init__(self, entry_id: str):
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class InvalidRange(SupplyLedgerError):
    """End of a supply session is not after its start."""
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class InvalidAmount(SupplyLedgerError):
    """Payment amount is zero or negative."""
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class UnknownRate(SupplyLedgerError):
    """No rate for the crop type and no default rate configured."""
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class TransactionFailure(SupplyLedgerError):
    """Store-level conflict or connectivity failure."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NoDataToExport(SupplyLedgerError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "No data to export for the selected filters."):
        super().__init__(message)
