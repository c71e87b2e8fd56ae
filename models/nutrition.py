from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, Field


def _half_up(value: float, places: int = 0) -> float:
    """Round halves away from zero on the decimal value as displayed (0.25 -> 0.3, 2.5 -> 3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class NutrientValuesDTO(BaseModel):
    """Absolute nutrient amounts (not per 100 g)."""
    energy_kcal: float = 0.0
    protein_g: float = 0.0
    fat_g: float = 0.0
    carbs_g: float = 0.0
    sugars_g: float = 0.0
    fiber_g: float = 0.0
    sodium_mg: float = 0.0

    def rounded(self) -> 'NutrientValuesDTO':
        """
        Display rounding: one decimal for gram quantities, integers for kcal and sodium.
        Halves round up.

        Only round final values; accumulate on the unrounded ones.
        """
        return NutrientValuesDTO(
            energy_kcal=_half_up(self.energy_kcal),
            protein_g=_half_up(self.protein_g, 1),
            fat_g=_half_up(self.fat_g, 1),
            carbs_g=_half_up(self.carbs_g, 1),
            sugars_g=_half_up(self.sugars_g, 1),
            fiber_g=_half_up(self.fiber_g, 1),
            sodium_mg=_half_up(self.sodium_mg),
        )


class NutritionSummaryDTO(BaseModel):
    totals: NutrientValuesDTO
    allergens: list[str] = Field(default_factory=list)
    lines_used: int = 0  # Lines that had both ingredient and nutrition rows


class LineInputDTO(BaseModel):
    amount: float
    unit: str


class NutritionBreakdownItemDTO(BaseModel):
    """
    Contribution of one line for the "explain the math" view.

    grams_used and factor let a human recompute contrib by hand:
    contrib = factor * per_100g_value, factor = grams_used / 100.
    """
    ingredient_id: str
    name: str
    input: LineInputDTO
    grams_used: float
    factor: float
    contrib: NutrientValuesDTO
