from enum import Enum


class PromoSessionState(Enum):
    IDLE = "IDLE"                  # No promo entered or promo removed
    VALIDATING = "VALIDATING"      # Validation round trip in flight
    NEEDS_ACTION = "NEEDS_ACTION"  # Eligible, waiting for variant/add-on/items
    APPLIED = "APPLIED"            # Discount resolved and frozen
    REJECTED = "REJECTED"          # Terminal failure for this attempt
