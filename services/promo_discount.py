"""
Promo Discount Service

Type-specific discount math, one case per PromoType. Runs only after
PromoEligibilityService.check() passed.

Sizes: 12 oz = 355 ml, 16 oz = 473 ml.
"""

import logging
from decimal import Decimal
from typing import assert_never

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.ineligibility_reason import IneligibilityReason
from enums.promo_action import PromoActionType
from enums.promo_type import PromoType
from exceptions.promo import (PromoNotEligibleException, PromoConfigurationNotFoundException,
                              PromoTransientException)
from models.cart import CartItemDTO, LineIngredientDTO
from models.promo import PromoDTO, PromoFreeAddonDTO
from models.promo_application import DiscountComputationDTO, RequiresActionDTO
from services.pricing import PricingService
from utils.money import round_half_up

logger = logging.getLogger(__name__)

SIZE_12OZ_ML = 355
SIZE_16OZ_ML = 473


class PromoDiscountService:
    """Service for promo discount computation."""

    @staticmethod
    def percentage_discount(promo: PromoDTO, subtotal_cents: int) -> int:
        """round(subtotal * pct / 100), halves rounded up."""
        percentage = Decimal(str(promo.discount_percentage or 0))
        return round_half_up(Decimal(subtotal_cents) * percentage / 100)

    @staticmethod
    def fixed_discount(promo: PromoDTO) -> int:
        return promo.discount_cents or 0

    @staticmethod
    def bundle_discount(
        promo: PromoDTO,
        subtotal_cents: int,
        cart_items: list[CartItemDTO],
        selected_variant_id: str | None = None
    ) -> DiscountComputationDTO:
        """
        Check bundle composition, then price the bundle.

        Discount is subtotal minus the bundle (or chosen variant) price, never
        below 0. Bundles with variants need a select_variant round first.

        Raises:
            PromoConfigurationNotFoundException: No bundle row, or no bundle price
            PromoNotEligibleException: 12oz/16oz requirement not met, or invalid variant
        """
        bundle = promo.bundle
        if bundle is None:
            raise PromoConfigurationNotFoundException(promo.code, "Bundle")

        count_12oz = sum(1 for item in cart_items if item.size_ml == SIZE_12OZ_ML)
        count_16oz = sum(1 for item in cart_items if item.size_ml == SIZE_16OZ_ML)

        if bundle.size_12oz_quantity > 0 and count_12oz < bundle.size_12oz_quantity:
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.BUNDLE_12OZ_REQUIRED,
                f"This bundle requires {bundle.size_12oz_quantity}x 12oz drink(s)"
            )
        if bundle.size_16oz_quantity > 0 and count_16oz < bundle.size_16oz_quantity:
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.BUNDLE_16OZ_REQUIRED,
                f"This bundle requires {bundle.size_16oz_quantity}x 16oz drink(s)"
            )

        if len(cart_items) < bundle.items_quantity:
            return DiscountComputationDTO(
                requires_action=RequiresActionDTO(
                    type=PromoActionType.ADD_ITEMS,
                    options={"required": bundle.items_quantity},
                ),
                message=f"This bundle requires {bundle.items_quantity} items",
            )

        if bundle.allow_variants:
            variants = promo.active_variants
            if selected_variant_id is None:
                return DiscountComputationDTO(
                    requires_action=RequiresActionDTO(
                        type=PromoActionType.SELECT_VARIANT,
                        options=[
                            {"id": v.id, "variant_name": v.variant_name, "price_cents": v.price_cents}
                            for v in variants
                        ],
                    )
                )
            variant = next((v for v in variants if v.id == selected_variant_id), None)
            if variant is None:
                raise PromoNotEligibleException(
                    promo.code, IneligibilityReason.INVALID_VARIANT, "Selected variant is invalid"
                )
            return DiscountComputationDTO(discount_cents=max(0, subtotal_cents - variant.price_cents))

        if promo.bundle_price_cents is None:
            raise PromoConfigurationNotFoundException(promo.code, "Bundle price")
        return DiscountComputationDTO(discount_cents=max(0, subtotal_cents - promo.bundle_price_cents))

    @staticmethod
    def has_qualifying_item(config: PromoFreeAddonDTO, cart_items: list[CartItemDTO]) -> bool:
        """Every configured constraint (size, drink) must be met by some cart item."""
        if config.qualifying_size_ml is not None and not any(
                item.size_ml == config.qualifying_size_ml for item in cart_items):
            return False
        if config.qualifying_drink_id is not None and not any(
                item.drink_id == config.qualifying_drink_id for item in cart_items):
            return False
        return bool(cart_items)

    @staticmethod
    def addon_lines(addon_id: str, cart_items: list[CartItemDTO]) -> list[LineIngredientDTO]:
        """Extra lines of the add-on across the cart, in cart order."""
        return [
            line
            for item in cart_items
            for line in item.lines
            if line.is_extra and line.ingredient_id == addon_id
        ]

    @staticmethod
    def free_units(config: PromoFreeAddonDTO) -> int:
        """
        Units given for free when the add-on is not in the cart yet.

        The configured free_addon_quantity (1 for customer-chosen add-ons),
        always between 1 and max_free_quantity.
        """
        requested = 1 if config.can_choose_addon else config.free_addon_quantity
        return max(1, min(requested, max(1, config.max_free_quantity)))

    @staticmethod
    async def free_addon_discount(
        promo: PromoDTO,
        cart_items: list[CartItemDTO],
        selected_addon_id: str | None,
        session: Session | AsyncSession
    ) -> DiscountComputationDTO:
        """
        Price of the free add-on, up to max_free_quantity units.

        Add-on lines already in the cart are priced as entered, first
        max_free_quantity lines in cart order. Otherwise the add-on is
        priced as one unit of its default unit, times free_units().

        Customer-chosen add-ons need a select_addon round first. An add-on
        without a pricing row gives a 0 discount.

        Raises:
            PromoConfigurationNotFoundException: No free add-on row
            PromoNotEligibleException: No qualifying drink in the cart
            PromoTransientException: Pricing lookup failed
        """
        config = promo.free_addon
        if config is None:
            raise PromoConfigurationNotFoundException(promo.code, "Free add-on")

        if not PromoDiscountService.has_qualifying_item(config, cart_items):
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.NO_QUALIFYING_ITEM,
                "Add a qualifying drink to use this promo"
            )

        if config.can_choose_addon:
            if selected_addon_id is None:
                return DiscountComputationDTO(
                    requires_action=RequiresActionDTO(
                        type=PromoActionType.SELECT_ADDON,
                        options={"maxFreeQuantity": config.max_free_quantity or 1},
                    )
                )
            addon_id = selected_addon_id
        else:
            addon_id = config.free_addon_id

        if addon_id is None:
            return DiscountComputationDTO(discount_cents=0)

        in_cart = PromoDiscountService.addon_lines(addon_id, cart_items)
        try:
            if in_cart:
                prices = await PricingService.price_addon_lines(addon_id, in_cart, session)
            else:
                unit_price = await PricingService.price_single_unit(addon_id, session)
                prices = [] if unit_price is None else [unit_price] * PromoDiscountService.free_units(config)
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Add-on pricing lookup failed for {promo.code}: {e}")
            raise PromoTransientException("price_free_addon", e)

        if not prices:
            logger.warning(f"[Promo] Free add-on {addon_id} of {promo.code} has no price, discount is 0")
            return DiscountComputationDTO(discount_cents=0)

        return DiscountComputationDTO(discount_cents=sum(prices[:max(1, config.max_free_quantity)]))

    @staticmethod
    def clamp(promo: PromoDTO, discount_cents: int, subtotal_cents: int) -> int:
        """Apply max_discount_cents, then never exceed the subtotal or go below 0."""
        if promo.max_discount_cents is not None and discount_cents > promo.max_discount_cents:
            discount_cents = promo.max_discount_cents
        if discount_cents > subtotal_cents:
            discount_cents = subtotal_cents
        return max(0, discount_cents)

    @staticmethod
    async def calculate(
        promo: PromoDTO,
        subtotal_cents: int,
        cart_items: list[CartItemDTO],
        session: Session | AsyncSession,
        selected_variant_id: str | None = None,
        selected_addon_id: str | None = None
    ) -> DiscountComputationDTO:
        """
        Dispatch on promo_type and clamp the result.

        Returns:
            DiscountComputationDTO with the clamped discount, or with
            requires_action set (discount 0) when more input is needed
        """
        match promo.promo_type:
            case PromoType.PERCENTAGE:
                computation = DiscountComputationDTO(
                    discount_cents=PromoDiscountService.percentage_discount(promo, subtotal_cents)
                )
            case PromoType.FIXED_AMOUNT:
                computation = DiscountComputationDTO(discount_cents=PromoDiscountService.fixed_discount(promo))
            case PromoType.BUNDLE:
                computation = PromoDiscountService.bundle_discount(
                    promo, subtotal_cents, cart_items, selected_variant_id
                )
            case PromoType.FREE_ADDON:
                computation = await PromoDiscountService.free_addon_discount(
                    promo, cart_items, selected_addon_id, session
                )
            case _:
                assert_never(promo.promo_type)

        if computation.needs_action:
            return computation

        computation.discount_cents = PromoDiscountService.clamp(promo, computation.discount_cents, subtotal_cents)
        return computation
