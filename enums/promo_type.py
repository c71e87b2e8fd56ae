from enum import Enum


class PromoType(str, Enum):
    """
    Closed set of promo variants.

    Each member has exactly one discount computation in
    services/promo_discount.py; adding a member without one fails there.
    """

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    BUNDLE = "bundle"
    FREE_ADDON = "free_addon"

    @property
    def discount_field(self) -> str | None:
        """Name of the promo column holding this type's discount value."""
        return {
            PromoType.PERCENTAGE: "discount_percentage",
            PromoType.FIXED_AMOUNT: "discount_cents",
            PromoType.BUNDLE: "bundle_price_cents",
            PromoType.FREE_ADDON: None,
        }[self]
