"""
Nutrition Service

Aggregates per-100g nutrition rows into totals for a set of line ingredients
(live preview while ordering) and into a per-line breakdown (audit view).
"""

import logging
from typing import Iterable, Iterator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from models.cart import LineIngredientDTO
from models.ingredient import IngredientDTO, IngredientNutritionDTO
from models.nutrition import (NutrientValuesDTO, NutritionSummaryDTO, NutritionBreakdownItemDTO,
                              LineInputDTO)
from repositories.ingredient import IngredientRepository
from services.unit_conversion import UnitConversionService

logger = logging.getLogger(__name__)

# NutrientValuesDTO field -> IngredientNutritionDTO per-100g field
NUTRIENT_FIELDS = {
    "energy_kcal": "per_100g_energy_kcal",
    "protein_g": "per_100g_protein_g",
    "fat_g": "per_100g_fat_g",
    "carbs_g": "per_100g_carbs_g",
    "sugars_g": "per_100g_sugars_g",
    "fiber_g": "per_100g_fiber_g",
    "sodium_mg": "per_100g_sodium_mg",
}


class NutritionService:
    """Service for nutrition totals and breakdowns."""

    @staticmethod
    def _resolved_lines(
        lines: Iterable[LineIngredientDTO],
        ingredients_by_id: dict[str, IngredientDTO],
        nutrition_by_id: dict[str, IngredientNutritionDTO]
    ) -> Iterator[tuple[LineIngredientDTO, IngredientDTO, IngredientNutritionDTO, float]]:
        """Yield (line, ingredient, nutrition, grams) for lines with complete data, in cart order."""
        for line in lines:
            ingredient = ingredients_by_id.get(line.ingredient_id)
            nutrition = nutrition_by_id.get(line.ingredient_id)
            if ingredient is None or nutrition is None:
                logger.debug(
                    f"[Nutrition] Skipping line {line.ingredient_id}: "
                    f"ingredient={'ok' if ingredient else 'missing'}, "
                    f"nutrition={'ok' if nutrition else 'missing'}"
                )
                continue
            grams = UnitConversionService.grams(line.amount, line.unit, ingredient)
            yield line, ingredient, nutrition, grams

    @staticmethod
    def _contribution(nutrition: IngredientNutritionDTO, factor: float) -> NutrientValuesDTO:
        return NutrientValuesDTO(**{
            field: factor * getattr(nutrition, per_100g_field)
            for field, per_100g_field in NUTRIENT_FIELDS.items()
        })

    @staticmethod
    def accumulate(
        lines: Iterable[LineIngredientDTO],
        ingredients_by_id: dict[str, IngredientDTO],
        nutrition_by_id: dict[str, IngredientNutritionDTO]
    ) -> NutritionSummaryDTO:
        """
        Sum nutrition across all lines without display rounding.

        Lines whose ingredient or nutrition row is missing are skipped;
        compare lines_used with len(lines) to detect incomplete data.

        Returns:
            NutritionSummaryDTO with unrounded totals and sorted allergen tags
        """
        sums = dict.fromkeys(NUTRIENT_FIELDS, 0.0)
        allergens: set[str] = set()
        lines_used = 0

        for _, ingredient, nutrition, grams in NutritionService._resolved_lines(
                lines, ingredients_by_id, nutrition_by_id):
            factor = grams / 100
            for field, per_100g_field in NUTRIENT_FIELDS.items():
                sums[field] += factor * getattr(nutrition, per_100g_field)
            allergens.update(ingredient.allergen_tags)
            lines_used += 1

        return NutritionSummaryDTO(
            totals=NutrientValuesDTO(**sums),
            allergens=sorted(allergens),
            lines_used=lines_used,
        )

    @staticmethod
    def totals(
        lines: Iterable[LineIngredientDTO],
        ingredients_by_id: dict[str, IngredientDTO],
        nutrition_by_id: dict[str, IngredientNutritionDTO]
    ) -> NutritionSummaryDTO:
        """
        Nutrition totals rounded for display.

        Example:
            2 tbsp peanut butter (16 g/unit, 588 kcal/100g) -> 32 g -> 188 kcal
        """
        summary = NutritionService.accumulate(lines, ingredients_by_id, nutrition_by_id)
        summary.totals = summary.totals.rounded()
        return summary

    @staticmethod
    def breakdown(
        lines: Iterable[LineIngredientDTO],
        ingredients_by_id: dict[str, IngredientDTO],
        nutrition_by_id: dict[str, IngredientNutritionDTO]
    ) -> list[NutritionBreakdownItemDTO]:
        """
        Per-line contributions in cart line order.

        Values are unrounded so the sum of contributions equals the unrounded
        totals; round at display time with NutrientValuesDTO.rounded().
        """
        items = []
        for line, ingredient, nutrition, grams in NutritionService._resolved_lines(
                lines, ingredients_by_id, nutrition_by_id):
            factor = grams / 100
            items.append(NutritionBreakdownItemDTO(
                ingredient_id=line.ingredient_id,
                name=ingredient.name,
                input=LineInputDTO(amount=line.amount, unit=line.unit),
                grams_used=grams,
                factor=factor,
                contrib=NutritionService._contribution(nutrition, factor),
            ))
        return items

    @staticmethod
    def has_missing_data(lines: list[LineIngredientDTO], summary: NutritionSummaryDTO) -> bool:
        """True when at least one line was skipped for missing ingredient/nutrition data."""
        return summary.lines_used < len(lines)

    @staticmethod
    async def totals_for_lines(
        lines: list[LineIngredientDTO],
        session: Session | AsyncSession
    ) -> NutritionSummaryDTO:
        """Batch-load ingredient and nutrition rows (two queries), then total them."""
        ingredient_ids = [line.ingredient_id for line in lines]
        ingredients_by_id = await IngredientRepository.get_by_ids(ingredient_ids, session)
        nutrition_by_id = await IngredientRepository.get_nutrition_by_ids(ingredient_ids, session)
        summary = NutritionService.totals(lines, ingredients_by_id, nutrition_by_id)
        if NutritionService.has_missing_data(lines, summary):
            logger.warning(f"[Nutrition] Incomplete data: {summary.lines_used}/{len(lines)} lines used")
        return summary
