from enum import Enum


class PromoActionType(str, Enum):
    """Extra input a promo needs before a discount can be finalized."""

    SELECT_VARIANT = "select_variant"
    SELECT_ADDON = "select_addon"
    ADD_ITEMS = "add_items"
