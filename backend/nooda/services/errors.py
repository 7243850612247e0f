# Overview: Exception hierarchy shared by the stock repository, recipe resolver and ledger.

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every failure a ledger operation reports to its caller."""
    code = "LEDGER_ERROR"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(LedgerError):
    """Bad input shape (non-positive quantity, empty cart); raised before storage is touched."""
    code = "VALIDATION_ERROR"
    http_status = 400


class NotFound(LedgerError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, resource: str, identifier):
        super().__init__(
            f"{resource} not found: {identifier}",
            {"resource": resource, "identifier": identifier},
        )


class NoRecipeDefined(LedgerError):
    code = "NO_RECIPE_DEFINED"
    http_status = 422

    def __init__(self, product_name: str, process_type: str, product_id: int):
        super().__init__(
            f"No {process_type} recipe defined for {product_name}",
            {"product_id": product_id, "process_type": process_type},
        )


class InsufficientStock(LedgerError):
    """
    One or more entities lack stock.

    details carries every shortfall, grouped by entity type:
        {"products": [...], "components": [...]}
    each item being {"id", "name", "required", "available"}.
    """
    code = "INSUFFICIENT_STOCK"
    http_status = 409


class StorageConflict(LedgerError):
    """An atomic apply was rejected even though validation passed (concurrent mutation)."""
    code = "STORAGE_CONFLICT"
    http_status = 409


class AuditLogWriteFailure(LedgerError):
    """The activity entry could not be written; never surfaced as an operation failure."""
    code = "AUDIT_LOG_WRITE_FAILURE"
    http_status = 500


class NoItemsToSell(ValidationError):
    """The cart is empty once zero-quantity lines are dropped."""
    code = "NO_ITEMS_TO_SELL"

    def __init__(self, message: str = "No items to sell"):
        super().__init__(message)


class StockLimitExceeded(ValidationError):
    """The write would push stock above MAX_STOCK_QUANTITY."""
    code = "STOCK_LIMIT_EXCEEDED"
