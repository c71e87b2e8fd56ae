"""
Promo Eligibility Service

Independent predicates a promo must all pass before any discount is computed.
Each check raises PromoNotEligibleException with its own reason and message;
check() runs them in order and stops at the first failure.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.ineligibility_reason import IneligibilityReason
from exceptions.promo import PromoNotEligibleException, PromoTransientException
from models.cart import CartItemDTO
from models.promo import PromoDTO
from repositories.promo_usage import PromoUsageRepository
from utils.money import format_cents

logger = logging.getLogger(__name__)


class PromoEligibilityService:

    @staticmethod
    def check_active(promo: PromoDTO) -> None:
        if not promo.is_active:
            raise PromoNotEligibleException(promo.code, IneligibilityReason.INACTIVE, "Invalid promo code")

    @staticmethod
    def check_time_window(promo: PromoDTO, now: datetime) -> None:
        """now must fall within [valid_from, valid_until); no valid_until means open-ended."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if now < promo.valid_from:
            raise PromoNotEligibleException(
                promo.code, IneligibilityReason.NOT_YET_ACTIVE, "This promo is not yet active"
            )
        if promo.valid_until is not None and now >= promo.valid_until:
            raise PromoNotEligibleException(promo.code, IneligibilityReason.EXPIRED, "This promo has expired")

    @staticmethod
    async def check_total_usage(promo: PromoDTO, session: Session | AsyncSession) -> None:
        if promo.usage_limit_total is None:
            return
        try:
            used = await PromoUsageRepository.count_by_promo(promo.id, session)
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Usage count failed for {promo.code}: {e}")
            raise PromoTransientException("count_promo_usage", e)
        if used >= promo.usage_limit_total:
            raise PromoNotEligibleException(
                promo.code, IneligibilityReason.USAGE_LIMIT_TOTAL, "This promo has reached its usage limit"
            )

    @staticmethod
    async def check_customer_usage(
        promo: PromoDTO,
        customer_identifier: str | None,
        session: Session | AsyncSession
    ) -> None:
        """Per-customer limit; skipped when no customer identifier is supplied."""
        if promo.usage_limit_per_customer is None or not customer_identifier:
            return
        try:
            used = await PromoUsageRepository.count_by_promo_and_customer(promo.id, customer_identifier, session)
        except SQLAlchemyError as e:
            logger.error(f"[Promo] Customer usage count failed for {promo.code}: {e}")
            raise PromoTransientException("count_customer_promo_usage", e)
        if used >= promo.usage_limit_per_customer:
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.USAGE_LIMIT_CUSTOMER,
                "You have reached the usage limit for this promo"
            )

    @staticmethod
    def check_min_order(promo: PromoDTO, subtotal_cents: int) -> None:
        if promo.min_order_cents is not None and subtotal_cents < promo.min_order_cents:
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.MIN_ORDER,
                f"Minimum order of {format_cents(promo.min_order_cents)} required"
            )

    @staticmethod
    def check_applicable_drinks(promo: PromoDTO, cart_items: list[CartItemDTO]) -> None:
        """At least one cart item must be one of the promo's drinks (empty/None list = all drinks)."""
        if not promo.applicable_drink_ids:
            return
        applicable = set(promo.applicable_drink_ids)
        if not any(item.drink_id in applicable for item in cart_items):
            raise PromoNotEligibleException(
                promo.code,
                IneligibilityReason.NOT_APPLICABLE,
                "This promo applies to specific drinks only"
            )

    @staticmethod
    async def check(
        promo: PromoDTO,
        subtotal_cents: int,
        cart_items: list[CartItemDTO],
        customer_identifier: str | None,
        session: Session | AsyncSession,
        now: datetime | None = None
    ) -> None:
        """
        Run every eligibility check, short-circuiting on the first failure.

        Raises:
            PromoNotEligibleException: A check failed (reason + user-facing message)
            PromoTransientException: A usage count could not be loaded
        """
        now = now or datetime.now(timezone.utc)
        PromoEligibilityService.check_active(promo)
        PromoEligibilityService.check_time_window(promo, now)
        await PromoEligibilityService.check_total_usage(promo, session)
        await PromoEligibilityService.check_customer_usage(promo, customer_identifier, session)
        PromoEligibilityService.check_min_order(promo, subtotal_cents)
        PromoEligibilityService.check_applicable_drinks(promo, cart_items)
