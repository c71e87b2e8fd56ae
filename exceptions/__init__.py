"""
Custom exceptions for the shake shop rules engine.

Exception Hierarchy:
--------------------
ShakeShopException (base)
└── PromoException
    ├── PromoInputException
    ├── PromoNotEligibleException
    │   ├── PromoNotFoundException
    │   └── PromoConfigurationNotFoundException
    └── PromoTransientException

Nutrition and pricing computations never raise: missing rows are skipped
or priced as None.

Usage:
------
Services raise specific exceptions:
    raise PromoNotEligibleException(code, IneligibilityReason.EXPIRED, "This promo has expired")

Callers convert them to results or user-facing messages:
    try:
        await PromoEligibilityService.check(promo, subtotal_cents, cart_items, customer, session)
    except PromoNotEligibleException as e:
        errors.append(str(e))
"""

from .base import ShakeShopException
from .promo import (
    PromoException,
    PromoInputException,
    PromoNotEligibleException,
    PromoNotFoundException,
    PromoConfigurationNotFoundException,
    PromoTransientException,
)

__all__ = [
    'ShakeShopException',
    'PromoException',
    'PromoInputException',
    'PromoNotEligibleException',
    'PromoNotFoundException',
    'PromoConfigurationNotFoundException',
    'PromoTransientException',
]
