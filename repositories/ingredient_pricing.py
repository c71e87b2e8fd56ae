from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.ingredient import IngredientPricing, IngredientPricingDTO


class IngredientPricingRepository:
    """Repository for ingredient pricing rows."""

    @staticmethod
    async def get_by_ingredient_ids(
        ingredient_ids: list[str],
        session: Session | AsyncSession
    ) -> list[IngredientPricingDTO]:
        """
        Batch-load active pricing rows for several ingredients.

        Feed the result to PricingService.group_pricing().
        """
        if not ingredient_ids:
            return []
        stmt = (
            select(IngredientPricing)
            .where(IngredientPricing.ingredient_id.in_(set(ingredient_ids)))
            .where(IngredientPricing.is_active == True)
            .order_by(IngredientPricing.ingredient_id, IngredientPricing.pricing_mode)
        )
        result = await session_execute(stmt, session)
        return [IngredientPricingDTO.model_validate(row, from_attributes=True) for row in result.scalars().all()]
