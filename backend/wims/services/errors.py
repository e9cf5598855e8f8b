"""
Error taxonomy for the stock ledger.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Services raise these; ``wims.main`` translates them.
"""


class InventoryError(Exception):
    code = "inventory_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(InventoryError):
    """Missing or malformed field; nothing was written."""

    code = "invalid_input"
    status_code = 422


class Conflict(InventoryError):
    """Duplicate SKU, or delete of a product that still has history."""

    code = "conflict"
    status_code = 409


class NotFound(InventoryError):
    code = "not_found"
    status_code = 404


class InvalidState(InventoryError):
    """Order is no longer PENDING."""

    code = "invalid_state"
    status_code = 409


class TransactionFailure(InventoryError):
    """The atomic unit failed mid-way and was rolled back in full."""

    code = "transaction_failure"
    status_code = 500


class LedgerImmutableError(InventoryError):
    code = "ledger_immutable"
    status_code = 500
