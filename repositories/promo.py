import logging
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, selectinload

from db import session_execute
from models.promo import Promo, PromoDTO, PromoBundleDTO, PromoFreeAddonDTO, PromoVariantDTO

logger = logging.getLogger(__name__)


class PromoRepository:
    """Repository for promos and their bundle / free add-on / variant rows."""

    @staticmethod
    def _to_dto(promo: Promo) -> PromoDTO | None:
        """
        Build a PromoDTO with its relations.

        Returns None (and logs) for rows that break the promo invariants, e.g.
        an unknown promo_type or two discount fields populated.
        """
        try:
            return PromoDTO(
                id=promo.id,
                code=promo.code,
                name=promo.name,
                description=promo.description,
                promo_type=promo.promo_type,
                discount_percentage=promo.discount_percentage,
                discount_cents=promo.discount_cents,
                bundle_price_cents=promo.bundle_price_cents,
                min_order_cents=promo.min_order_cents,
                max_discount_cents=promo.max_discount_cents,
                usage_limit_per_customer=promo.usage_limit_per_customer,
                usage_limit_total=promo.usage_limit_total,
                valid_from=promo.valid_from,
                valid_until=promo.valid_until,
                applicable_drink_ids=promo.applicable_drink_ids,
                is_active=promo.is_active,
                priority=promo.priority or 0,
                terms=promo.terms,
                bundle=PromoBundleDTO.model_validate(promo.bundles[0], from_attributes=True)
                if promo.bundles else None,
                free_addon=PromoFreeAddonDTO.model_validate(promo.free_addons[0], from_attributes=True)
                if promo.free_addons else None,
                variants=[PromoVariantDTO.model_validate(v, from_attributes=True) for v in promo.variants],
            )
        except ValidationError as e:
            logger.error(f"[Promo] Promo {promo.id} ({promo.code}) has invalid configuration: {e}")
            return None

    @staticmethod
    def _with_relations(stmt):
        return stmt.options(
            selectinload(Promo.bundles),
            selectinload(Promo.free_addons),
            selectinload(Promo.variants),
        )

    @staticmethod
    async def get_by_code_with_relations(
        code: str,
        session: Session | AsyncSession
    ) -> PromoDTO | None:
        """
        Get an active promo by normalized code, with bundle, free add-on and variants.

        Args:
            code: Upper-cased, trimmed promo code
            session: Database session

        Returns:
            PromoDTO, or None if no active promo has this code
        """
        stmt = PromoRepository._with_relations(
            select(Promo).where(Promo.code == code).where(Promo.is_active == True).limit(1)
        )
        result = await session_execute(stmt, session)
        promo = result.scalar()
        if promo is None:
            return None
        return PromoRepository._to_dto(promo)

    @staticmethod
    async def get_active_in_window(
        now: datetime,
        session: Session | AsyncSession
    ) -> list[PromoDTO]:
        """Active promos whose validity window contains now, highest priority first."""
        stmt = PromoRepository._with_relations(
            select(Promo)
            .where(Promo.is_active == True)
            .where(Promo.valid_from <= now)
            .where(or_(Promo.valid_until.is_(None), Promo.valid_until > now))
            .order_by(Promo.priority.desc(), Promo.code)
        )
        result = await session_execute(stmt, session)
        promos = [PromoRepository._to_dto(promo) for promo in result.scalars().all()]
        return [promo for promo in promos if promo is not None]
