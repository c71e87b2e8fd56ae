import logging
from decimal import Decimal
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.ingredient_unit import IngredientUnit
from enums.pricing_mode import PricingMode
from models.cart import CartItemDTO, LineIngredientDTO
from models.ingredient import IngredientDTO, IngredientPricingDTO
from models.pricing import LinePricingResultDTO
from repositories.ingredient import IngredientRepository
from repositories.ingredient_pricing import IngredientPricingRepository
from services.unit_conversion import UnitConversionService
from utils.money import round_half_up

logger = logging.getLogger(__name__)

# ingredient_id -> pricing_mode -> rows offered in that mode
PricingTable = dict[str, dict[PricingMode, list[IngredientPricingDTO]]]


class PricingService:
    """Service for ingredient line pricing. All amounts are integer cents."""

    @staticmethod
    def group_pricing(rows: Iterable[IngredientPricingDTO]) -> PricingTable:
        """
        Group pricing rows by ingredient id, then by mode.

        Inactive rows are dropped here so no price is ever computed from them.
        """
        table: PricingTable = {}
        for row in rows:
            if not row.is_active:
                continue
            table.setdefault(row.ingredient_id, {}).setdefault(row.pricing_mode, []).append(row)
        return table

    @staticmethod
    def _per_unit_row(rows: list[IngredientPricingDTO], unit: str) -> IngredientPricingDTO | None:
        for row in rows:
            if row.cents_per is not None and (row.unit_label or "").strip().lower() == unit:
                return row
        return None

    @staticmethod
    def _rate_row(modes: dict[PricingMode, list[IngredientPricingDTO]],
                  mode: PricingMode) -> IngredientPricingDTO | None:
        for row in modes.get(mode, []):
            if row.cents_per is not None:
                return row
        return None

    @staticmethod
    def price_for_line(
        line: LineIngredientDTO,
        pricing_table: PricingTable,
        ingredients_by_id: dict[str, IngredientDTO]
    ) -> int | None:
        """
        Resolve the price of one ingredient line in cents.

        Mode resolution order:
        1. per_unit row whose unit_label matches the line unit -> cents_per x amount
        2. per_ml (line entered in ml) or per_gram (any other unit) -> cents_per x
           converted millilitres / grams; the other mass/volume mode is the fallback
        3. flat -> price_cents, independent of amount

        Mass/volume modes need the ingredient for conversion; without it only
        per_unit and flat can apply.

        Returns:
            Price in cents, or None when no pricing row matches. None is not 0:
            callers must show "no price" and leave the line out of totals.
        """
        modes = pricing_table.get(line.ingredient_id)
        if not modes:
            return None

        unit = (line.unit or "").strip().lower()
        amount = Decimal(str(line.amount or 0))

        per_unit = PricingService._per_unit_row(modes.get(PricingMode.PER_UNIT, []), unit)
        if per_unit is not None:
            return round_half_up(Decimal(str(per_unit.cents_per)) * amount)

        ingredient = ingredients_by_id.get(line.ingredient_id)
        if ingredient is not None:
            if unit == IngredientUnit.MILLILITERS.value:
                preference = (PricingMode.PER_ML, PricingMode.PER_GRAM)
            else:
                preference = (PricingMode.PER_GRAM, PricingMode.PER_ML)

            for mode in preference:
                row = PricingService._rate_row(modes, mode)
                if row is None:
                    continue
                if mode == PricingMode.PER_GRAM:
                    quantity = UnitConversionService.grams(line.amount, line.unit, ingredient)
                else:
                    quantity = UnitConversionService.millilitres(line.amount, line.unit, ingredient)
                return round_half_up(Decimal(str(row.cents_per)) * Decimal(str(quantity)))

        for row in modes.get(PricingMode.FLAT, []):
            if row.price_cents is not None:
                return row.price_cents

        return None

    @staticmethod
    def price_for_extras(
        lines: Iterable[LineIngredientDTO],
        pricing_table: PricingTable,
        ingredients_by_id: dict[str, IngredientDTO]
    ) -> int:
        """Sum of priced lines in cents; unpriced lines are excluded, not counted as 0."""
        return PricingService.price_for_item_lines(lines, pricing_table, ingredients_by_id).total_cents

    @staticmethod
    def price_for_item_lines(
        lines: Iterable[LineIngredientDTO],
        pricing_table: PricingTable,
        ingredients_by_id: dict[str, IngredientDTO],
        extras_only: bool = False
    ) -> LinePricingResultDTO:
        """
        Price a set of lines and report which ones had no price.

        Args:
            lines: Line ingredients (e.g. one cart item's lines)
            pricing_table: Result of group_pricing()
            ingredients_by_id: Ingredient lookup for unit conversion
            extras_only: Only price lines with role "extra" (base recipe is in the drink price)
        """
        result = LinePricingResultDTO()
        for line in lines:
            if extras_only and not line.is_extra:
                continue
            price = PricingService.price_for_line(line, pricing_table, ingredients_by_id)
            if price is None:
                result.unpriced_ingredient_ids.append(line.ingredient_id)
                continue
            result.total_cents += price
            result.priced_lines += 1

        if result.unpriced_ingredient_ids:
            logger.warning(
                f"[Pricing] No pricing row for ingredients: {', '.join(result.unpriced_ingredient_ids)}"
            )
        return result

    @staticmethod
    async def price_single_unit(
        ingredient_id: str,
        session: Session | AsyncSession
    ) -> int | None:
        """
        Price one unit of an ingredient (an add-on) in its default unit.

        Loads the ingredient and its pricing rows; returns None when either is
        missing or no row matches.
        """
        ingredient = await IngredientRepository.get_by_id(ingredient_id, session)
        if ingredient is None:
            logger.warning(f"[Pricing] Ingredient {ingredient_id} not found")
            return None

        rows = await IngredientPricingRepository.get_by_ingredient_ids([ingredient_id], session)
        line = LineIngredientDTO(
            ingredient_id=ingredient_id,
            amount=1,
            unit=ingredient.unit_default,
            name=ingredient.name,
        )
        return PricingService.price_for_line(
            line,
            PricingService.group_pricing(rows),
            {ingredient.id: ingredient}
        )

    @staticmethod
    async def price_addon_lines(
        ingredient_id: str,
        lines: list[LineIngredientDTO],
        session: Session | AsyncSession
    ) -> list[int]:
        """
        Price each cart line of one add-on as entered (its own amount and unit).

        Keeps cart order. Lines without a matching pricing row are left out.
        """
        ingredients_by_id = await IngredientRepository.get_by_ids([ingredient_id], session)
        rows = await IngredientPricingRepository.get_by_ingredient_ids([ingredient_id], session)
        pricing_table = PricingService.group_pricing(rows)

        prices = []
        for line in lines:
            price = PricingService.price_for_line(line, pricing_table, ingredients_by_id)
            if price is None:
                logger.warning(f"[Pricing] No price for {line.amount} {line.unit} of {ingredient_id}")
                continue
            prices.append(price)
        return prices

    @staticmethod
    async def price_cart_item(
        item: CartItemDTO,
        session: Session | AsyncSession
    ) -> LinePricingResultDTO:
        """
        Price the extras of one cart item.

        The base recipe is included in the drink price; only lines with role
        "extra" are charged on top of unit_price_cents.
        """
        ingredient_ids = [line.ingredient_id for line in item.lines if line.is_extra]
        ingredients_by_id = await IngredientRepository.get_by_ids(ingredient_ids, session)
        rows = await IngredientPricingRepository.get_by_ingredient_ids(ingredient_ids, session)
        return PricingService.price_for_item_lines(
            item.lines,
            PricingService.group_pricing(rows),
            ingredients_by_id,
            extras_only=True
        )
