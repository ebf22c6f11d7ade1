"""Typed errors raised by stock services.

Services raise these inside ``transaction.atomic`` blocks, so a raise always
rolls back any ledger or balance writes made so far in that block.
"""


class StockError(Exception):
    """Base class for stock ledger failures."""

    code = "stock_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidArgument(StockError):
    code = "invalid_argument"


class InvalidReasonCode(StockError):
    code = "invalid_reason_code"

    def __init__(self, reason_code, direction):
        super().__init__(f"Invalid reason code {reason_code} for movement type {direction}")
        self.reason_code = reason_code
        self.direction = direction


class InsufficientStock(StockError):
    code = "insufficient_stock"

    def __init__(self, available: int, required: int):
        super().__init__(f"Insufficient stock. Available: {available}, Required: {required}")
        self.available = available
        self.required = required


class NotFound(StockError):
    code = "not_found"


class InvalidState(StockError):
    code = "invalid_state"


class IntegrityFault(StockError):
    """Ledger replay disagrees with the cached balance."""

    code = "integrity_fault"

    def __init__(self, *, variant_id: int, location_id: int, ledger_qty: int, cached_qty: int):
        super().__init__(
            f"Balance drift for variant {variant_id} at location {location_id}: "
            f"ledger={ledger_qty} cached={cached_qty}"
        )
        self.variant_id = variant_id
        self.location_id = location_id
        self.ledger_qty = ledger_qty
        self.cached_qty = cached_qty
