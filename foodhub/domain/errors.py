# foodhub/domain/errors.py
from typing import Any, Dict, List


class DomainError(Exception):
    """Bazowy blad domenowy: kod maszynowy + ustrukturyzowane szczegoly."""

    code = "domain_error"

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotFound(DomainError):
    code = "not_found"


class ValidationFailed(DomainError):
    code = "validation_failed"

    def __init__(self, message: str, errors: List[str] | None = None, details: Dict[str, Any] | None = None):
        self.errors = list(errors or [])
        super().__init__(message, {"errors": self.errors, **(details or {})})


class InvalidInput(ValidationFailed):
    code = "invalid_input"

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message, [message], details)


class BelowMinimumOrder(ValidationFailed):
    code = "below_minimum_order"

    def __init__(self, shortfalls: List[Dict[str, Any]]):
        self.shortfalls = shortfalls
        errors = [
            f"Partner {s['partner_id']} requires a minimum order of {s['min_order_amount']}, "
            f"cart has {s['subtotal']}"
            for s in shortfalls
        ]
        super().__init__("Minimum order amount not reached", errors, {"shortfalls": shortfalls})


class PriceOrAvailabilityDrift(DomainError):
    code = "price_or_availability_drift"

    def __init__(self, mismatches: List[Dict[str, Any]]):
        self.mismatches = mismatches
        super().__init__("Catalog changed since the cart was priced", {"mismatches": mismatches})


class InsufficientStock(DomainError):
    code = "insufficient_stock"

    def __init__(self, menu_item_id: int, requested: int, available: int | None):
        self.menu_item_id = menu_item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for item {menu_item_id}",
            {"menu_item_id": menu_item_id, "requested": requested, "available": available},
        )


class IllegalTransition(DomainError):
    code = "illegal_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move from '{current}' to '{requested}'",
            {"current": current, "requested": requested},
        )


class ConcurrencyConflict(DomainError):
    code = "concurrency_conflict"
