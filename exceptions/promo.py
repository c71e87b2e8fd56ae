"""
Promo-related exceptions.

The message of every exception here is user-facing and specific enough to
act on; handlers can show str(e) directly.
"""

from enums.ineligibility_reason import IneligibilityReason
from .base import ShakeShopException


class PromoException(ShakeShopException):
    """Base exception for promo-related errors."""
    pass


class PromoInputException(PromoException):
    """Raised when the entered code is empty or malformed."""

    def __init__(self, message: str = "Please enter a promo code", code: str | None = None):
        super().__init__(message, details={'code': code})
        self.code = code


class PromoNotEligibleException(PromoException):
    """Raised when a named eligibility check fails."""

    def __init__(self, code: str, reason: IneligibilityReason, message: str):
        super().__init__(
            message,
            details={'code': code, 'reason': reason.value}
        )
        self.code = code
        self.reason = reason


class PromoNotFoundException(PromoNotEligibleException):
    """Raised when no active promo exists for the code."""

    def __init__(self, code: str):
        super().__init__(code, IneligibilityReason.NOT_FOUND, "Invalid promo code")


class PromoConfigurationNotFoundException(PromoNotEligibleException):
    """Raised when a bundle/free add-on promo has no configuration row."""

    def __init__(self, code: str, config_name: str):
        super().__init__(
            code,
            IneligibilityReason.CONFIGURATION_NOT_FOUND,
            f"{config_name} configuration not found"
        )
        self.config_name = config_name


class PromoTransientException(PromoException):
    """Raised when a backend lookup fails; the promo may still be valid."""

    def __init__(self, operation: str, cause: Exception | None = None):
        super().__init__(
            "Promos are temporarily unavailable, please try again",
            details={'operation': operation, 'cause': repr(cause) if cause else None}
        )
        self.operation = operation
        self.cause = cause
