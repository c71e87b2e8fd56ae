from enum import Enum


class PromoErrorKind(Enum):
    INPUT = "INPUT"                # Rejected locally before any lookup
    NOT_ELIGIBLE = "NOT_ELIGIBLE"  # A named eligibility check failed
    TRANSIENT = "TRANSIENT"        # Backend unreachable, try again
