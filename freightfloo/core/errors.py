"""Domain exceptions raised by the marketplace services.

Routes never translate these by hand: ``freightfloo.main`` registers one
exception handler that maps each class to its HTTP status.
"""
from typing import Any, Dict, Optional


class FreightFlooError(Exception):
    """Base exception for marketplace rule violations."""

    status_code = 400
    default_code = "ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(FreightFlooError):
    """Malformed or rule-violating input (e.g. a bid above the ceiling)."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class AmountMismatchError(ValidationError):
    """Payment, refund or offer amount inconsistent with the record it targets."""

    default_code = "AMOUNT_MISMATCH"

    def __init__(self, message: str, expected: Optional[float] = None, received: Optional[float] = None):
        super().__init__(message)
        self.expected = expected
        self.received = received
        if expected is not None:
            self.details["expected"] = expected
        if received is not None:
            self.details["received"] = received


class AuthenticationError(FreightFlooError):
    status_code = 401
    default_code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(FreightFlooError):
    """Wrong role, or a non-owner attempting a privileged transition."""

    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(FreightFlooError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(FreightFlooError):
    """Duplicate record, or state already moved on by another request."""

    status_code = 409
    default_code = "CONFLICT"


class InsufficientStateError(FreightFlooError):
    """Operation attempted from the wrong lifecycle state."""

    status_code = 409
    default_code = "INSUFFICIENT_STATE"


class PaymentProviderError(FreightFlooError):
    """Stripe refused or failed a call we cannot continue without."""

    status_code = 502
    default_code = "PAYMENT_PROVIDER_ERROR"
