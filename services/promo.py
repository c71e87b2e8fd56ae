"""
Promo Service

Client-side mirror of the validate_apply_promo server procedure plus promo
usage recording and display helpers.

The mirror is advisory: it gives instant feedback in the cart, but it cannot
enforce usage limits under concurrent customers. The server procedure
(services/promo_rpc.py) re-validates at order commit and is the authority.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from enums.promo_type import PromoType
from exceptions.promo import PromoNotEligibleException, PromoNotFoundException, PromoTransientException
from models.cart import CartItemDTO
from models.promo import PromoDTO
from models.promo_application import (PromoApplicationRequestDTO, PromoApplicationResultDTO,
                                      AppliedPromoDTO)
from models.promo_usage import PromoUsageDTO
from repositories.promo import PromoRepository
from repositories.promo_usage import PromoUsageRepository
from services.promo_discount import PromoDiscountService
from services.promo_eligibility import PromoEligibilityService
from utils.money import format_cents

logger = logging.getLogger(__name__)


class PromoService:
    """Service for promo validation, application and usage tracking."""

    @staticmethod
    async def validate_apply(
        request: PromoApplicationRequestDTO,
        session: Session | AsyncSession,
        now: datetime | None = None
    ) -> PromoApplicationResultDTO:
        """
        Validate a promo code against the cart and compute the discount.

        Flow:
        1. Normalize code (trim, upper case); empty -> "Please enter a promo code"
        2. Load the active promo with bundle / free add-on / variants
        3. Eligibility checks (window, usage limits, minimum order, drinks)
        4. Type-specific discount, clamped to max_discount_cents and subtotal

        Ineligibility and requires-action outcomes come back as a failed result
        (errors / requires_action set), exactly like the server procedure.

        Raises:
            PromoTransientException: Database unavailable; not an ineligibility
        """
        subtotal_cents = request.subtotal_cents
        code = request.normalized_code
        if not code:
            return PromoApplicationResultDTO.failure(subtotal_cents, "Please enter a promo code")

        try:
            promo = await PromoRepository.get_by_code_with_relations(code, session)
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Promo lookup failed for {code}: {e}")
            raise PromoTransientException("load_promo", e)

        try:
            if promo is None:
                raise PromoNotFoundException(code)

            await PromoEligibilityService.check(
                promo,
                subtotal_cents,
                request.cart_items,
                request.customer_identifier,
                session,
                now=now,
            )
            computation = await PromoDiscountService.calculate(
                promo,
                subtotal_cents,
                request.cart_items,
                session,
                selected_variant_id=request.selected_variant_id,
                selected_addon_id=request.selected_addon_id,
            )
        except PromoNotEligibleException as e:
            logger.info(f"[Promo] {code} rejected: {e.reason.value}")
            return PromoApplicationResultDTO.failure(subtotal_cents, str(e))

        if computation.needs_action:
            logger.info(f"[Promo] {code} requires action: {computation.requires_action.type.value}")
            errors = [computation.message] if computation.message else []
            return PromoApplicationResultDTO.failure(
                subtotal_cents, *errors, requires_action=computation.requires_action
            )

        discount_cents = computation.discount_cents
        logger.info(f"[Promo] {code} applied: discount={discount_cents} subtotal={subtotal_cents}")
        return PromoApplicationResultDTO(
            success=True,
            discount_cents=discount_cents,
            new_subtotal_cents=subtotal_cents - discount_cents,
            applied_promo=AppliedPromoDTO(
                promo_id=promo.id,
                code=promo.code,
                description=promo.description or promo.name,
            ),
        )

    @staticmethod
    async def record_usage(
        promo_id: str,
        order_id: str,
        discount_cents: int,
        session: Session | AsyncSession,
        customer_identifier: str | None = None
    ) -> bool:
        """
        Append a usage row when an order that used a promo completes.

        Called exactly once per order; a second call for the same order is
        ignored. Failures are logged and never block order completion.

        Returns:
            True if a row was written
        """
        try:
            if await PromoUsageRepository.exists_for_order(promo_id, order_id, session):
                logger.warning(f"[Promo] Usage for promo {promo_id} / order {order_id} already recorded")
                return False
            await PromoUsageRepository.create(
                PromoUsageDTO(
                    promo_id=promo_id,
                    order_id=order_id,
                    customer_identifier=customer_identifier,
                    discount_cents=discount_cents,
                ),
                session
            )
            await session_commit(session)
            return True
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Failed to record usage for promo {promo_id} / order {order_id}: {e}")
            await session_rollback(session)
            return False

    @staticmethod
    async def get_available_promos(
        cart_items: list[CartItemDTO],
        subtotal_cents: int,
        session: Session | AsyncSession,
        now: datetime | None = None
    ) -> list[PromoDTO]:
        """
        Promos worth showing for the current cart, highest priority first.

        Only window, minimum order and drink applicability are checked here;
        usage limits are left to validate_apply(). Errors return an empty list.
        """
        now = now or datetime.now(timezone.utc)
        try:
            promos = await PromoRepository.get_active_in_window(now, session)
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Error fetching available promos: {e}")
            return []

        available = []
        for promo in promos:
            try:
                PromoEligibilityService.check_min_order(promo, subtotal_cents)
                PromoEligibilityService.check_applicable_drinks(promo, cart_items)
            except PromoNotEligibleException:
                continue
            available.append(promo)
        return available

    @staticmethod
    def is_currently_valid(promo: PromoDTO, now: datetime | None = None) -> bool:
        """Active and inside its validity window."""
        try:
            PromoEligibilityService.check_active(promo)
            PromoEligibilityService.check_time_window(promo, now or datetime.now(timezone.utc))
        except PromoNotEligibleException:
            return False
        return True

    @staticmethod
    def calculate_savings(original_cents: int, promo: PromoDTO) -> int:
        """
        Advertised savings for a given amount, without cart checks.

        Free add-on savings depend on the add-on price and are reported as 0.
        """
        match promo.promo_type:
            case PromoType.PERCENTAGE:
                return PromoDiscountService.percentage_discount(promo, original_cents)
            case PromoType.FIXED_AMOUNT:
                return min(promo.discount_cents or 0, original_cents)
            case PromoType.BUNDLE:
                return max(0, original_cents - (promo.bundle_price_cents or 0))
            case PromoType.FREE_ADDON:
                return 0

    @staticmethod
    def format_discount(promo: PromoDTO) -> str:
        """
        Short badge text for a promo card.

        Examples:
            "15% OFF", "SAVE ₱50.00", "₱410.00 BUNDLE", "FREE ADD-ON"
        """
        match promo.promo_type:
            case PromoType.PERCENTAGE:
                percentage = promo.discount_percentage or 0
                return f"{percentage:g}% OFF"
            case PromoType.FIXED_AMOUNT:
                return f"SAVE {format_cents(promo.discount_cents or 0)}"
            case PromoType.BUNDLE:
                return f"{format_cents(promo.bundle_price_cents or 0)} BUNDLE"
            case PromoType.FREE_ADDON:
                return "FREE ADD-ON"
