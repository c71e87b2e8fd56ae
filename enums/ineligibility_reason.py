from enum import Enum


class IneligibilityReason(str, Enum):
    """Machine-readable reason attached to every NotEligible result."""

    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_ACTIVE = "not_yet_active"
    EXPIRED = "expired"
    USAGE_LIMIT_TOTAL = "usage_limit_total"
    USAGE_LIMIT_CUSTOMER = "usage_limit_customer"
    MIN_ORDER = "min_order"
    NOT_APPLICABLE = "not_applicable"
    CONFIGURATION_NOT_FOUND = "configuration_not_found"
    BUNDLE_12OZ_REQUIRED = "bundle_12oz_required"
    BUNDLE_16OZ_REQUIRED = "bundle_16oz_required"
    INVALID_VARIANT = "invalid_variant"
    NO_QUALIFYING_ITEM = "no_qualifying_item"
