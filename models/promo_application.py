from typing import Any

from pydantic import BaseModel, Field

from enums.promo_action import PromoActionType
from models.cart import CartItemDTO


class PromoApplicationRequestDTO(BaseModel):
    """Arguments of validate_apply_promo, shared by the local mirror and the RPC."""
    code: str
    subtotal_cents: int
    cart_items: list[CartItemDTO] = Field(default_factory=list)
    selected_variant_id: str | None = None
    selected_addon_id: str | None = None
    customer_identifier: str | None = None

    @property
    def normalized_code(self) -> str:
        return (self.code or "").strip().upper()


class RequiresActionDTO(BaseModel):
    """
    One more piece of user input needed before a discount exists.

    options by type:
        select_variant: list of {id, variant_name, price_cents}
        select_addon:   {"maxFreeQuantity": int}
        add_items:      {"required": int}
    """
    type: PromoActionType
    options: Any = None


class AppliedPromoDTO(BaseModel):
    """Snapshot frozen at application time."""
    promo_id: str
    code: str
    description: str


class PromoApplicationResultDTO(BaseModel):
    """Result of validate_apply_promo; field names match the server procedure."""
    success: bool
    discount_cents: int = 0
    new_subtotal_cents: int = 0
    applied_promo: AppliedPromoDTO | None = None
    requires_action: RequiresActionDTO | None = None
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def failure(cls, subtotal_cents: int, *errors: str,
                requires_action: RequiresActionDTO | None = None) -> 'PromoApplicationResultDTO':
        return cls(
            success=False,
            discount_cents=0,
            new_subtotal_cents=subtotal_cents,
            requires_action=requires_action,
            errors=list(errors),
        )


class DiscountComputationDTO(BaseModel):
    """
    Outcome of the type-specific discount math.

    Either a discount exists, or requires_action says which input is missing
    (message explains it when the action comes with an error, e.g. add_items).
    """
    discount_cents: int = 0
    requires_action: RequiresActionDTO | None = None
    message: str | None = None

    @property
    def needs_action(self) -> bool:
        return self.requires_action is not None
