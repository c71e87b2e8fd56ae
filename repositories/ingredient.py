from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.ingredient import Ingredient, IngredientDTO, IngredientNutrition, IngredientNutritionDTO


class IngredientRepository:
    """Repository for ingredient and per-100g nutrition rows."""

    @staticmethod
    async def get_by_id(ingredient_id: str, session: Session | AsyncSession) -> IngredientDTO | None:
        stmt = select(Ingredient).where(Ingredient.id == ingredient_id)
        result = await session_execute(stmt, session)
        ingredient = result.scalar()
        if ingredient is None:
            return None
        return IngredientDTO.model_validate(ingredient, from_attributes=True)

    @staticmethod
    async def get_by_ids(
        ingredient_ids: list[str],
        session: Session | AsyncSession
    ) -> dict[str, IngredientDTO]:
        """
        Batch-load ingredients (prevents N+1 queries).

        Returns:
            Dict mapping ingredient_id to IngredientDTO; unknown ids are absent
        """
        if not ingredient_ids:
            return {}
        stmt = select(Ingredient).where(Ingredient.id.in_(set(ingredient_ids)))
        result = await session_execute(stmt, session)
        return {
            ingredient.id: IngredientDTO.model_validate(ingredient, from_attributes=True)
            for ingredient in result.scalars().all()
        }

    @staticmethod
    async def get_nutrition_by_ids(
        ingredient_ids: list[str],
        session: Session | AsyncSession
    ) -> dict[str, IngredientNutritionDTO]:
        """Batch-load per-100g nutrition rows keyed by ingredient id."""
        if not ingredient_ids:
            return {}
        stmt = select(IngredientNutrition).where(IngredientNutrition.ingredient_id.in_(set(ingredient_ids)))
        result = await session_execute(stmt, session)
        return {
            row.ingredient_id: IngredientNutritionDTO.model_validate(row, from_attributes=True)
            for row in result.scalars().all()
        }

