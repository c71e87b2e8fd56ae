from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.promo_usage import PromoUsage, PromoUsageDTO


class PromoUsageRepository:
    """Append-only access to the promo usage ledger."""

    @staticmethod
    async def count_by_promo(promo_id: str, session: Session | AsyncSession) -> int:
        stmt = select(func.count(PromoUsage.id)).where(PromoUsage.promo_id == promo_id)
        result = await session_execute(stmt, session)
        return result.scalar_one()

    @staticmethod
    async def count_by_promo_and_customer(
        promo_id: str,
        customer_identifier: str,
        session: Session | AsyncSession
    ) -> int:
        stmt = (
            select(func.count(PromoUsage.id))
            .where(PromoUsage.promo_id == promo_id)
            .where(PromoUsage.customer_identifier == customer_identifier)
        )
        result = await session_execute(stmt, session)
        return result.scalar_one()

    @staticmethod
    async def exists_for_order(promo_id: str, order_id: str, session: Session | AsyncSession) -> bool:
        stmt = (
            select(PromoUsage.id)
            .where(PromoUsage.promo_id == promo_id)
            .where(PromoUsage.order_id == order_id)
            .limit(1)
        )
        result = await session_execute(stmt, session)
        return result.scalar() is not None

    @staticmethod
    async def create(usage_dto: PromoUsageDTO, session: Session | AsyncSession) -> str:
        usage = PromoUsage(**usage_dto.model_dump(exclude_none=True))
        session.add(usage)
        await session_flush(session)
        return usage.id
