from models.ingredient import IngredientDTO
from enums.ingredient_unit import IngredientUnit

# Fallbacks used when an ingredient has no unit-specific conversion data
DEFAULT_DENSITY_G_PER_ML = 1.03
DEFAULT_GRAMS_PER_TBSP = 12.0
DEFAULT_GRAMS_PER_TSP = 4.0
DEFAULT_GRAMS_PER_CUP = 80.0
DEFAULT_GRAMS_PER_UNIT = 30.0  # scoop / piece

_SPOON_DEFAULTS = {
    IngredientUnit.TABLESPOON.value: ("grams_per_tbsp", DEFAULT_GRAMS_PER_TBSP),
    IngredientUnit.TEASPOON.value: ("grams_per_tsp", DEFAULT_GRAMS_PER_TSP),
    IngredientUnit.CUP.value: ("grams_per_cup", DEFAULT_GRAMS_PER_CUP),
}


class UnitConversionService:
    """
    Converts entered quantities to grams.

    Pure and cheap: it runs on every keystroke of quantity inputs, so it
    never touches the database and never raises for missing data.
    """

    @staticmethod
    def grams(amount: float, unit: str, ingredient: IngredientDTO) -> float:
        """
        Convert amount + unit to grams using the ingredient's conversion data.

        Precedence for spoon/cup units: unit-specific factor, then
        grams_per_unit, then the fixed default. Unknown unit strings are
        treated as grams.

        Examples:
            >>> UnitConversionService.grams(2, "tbsp", IngredientDTO(id="pb", name="Peanut Butter", grams_per_unit=16))
            32.0
            >>> UnitConversionService.grams(100, "ml", IngredientDTO(id="milk", name="Milk"))
            103.0
        """
        if amount is None or amount <= 0:
            return 0.0

        unit = (unit or "").strip().lower()

        if unit == IngredientUnit.GRAMS.value:
            return float(amount)

        if unit == IngredientUnit.MILLILITERS.value:
            density = ingredient.density_g_per_ml or DEFAULT_DENSITY_G_PER_ML
            return amount * density

        if unit in _SPOON_DEFAULTS:
            field_name, default = _SPOON_DEFAULTS[unit]
            factor = getattr(ingredient, field_name) or ingredient.grams_per_unit or default
            return amount * factor

        if unit in (IngredientUnit.SCOOP.value, IngredientUnit.PIECE.value):
            return amount * (ingredient.grams_per_unit or DEFAULT_GRAMS_PER_UNIT)

        # Unrecognized unit: assume the amount is already grams
        return float(amount)

    @staticmethod
    def millilitres(amount: float, unit: str, ingredient: IngredientDTO) -> float:
        """
        Convert amount + unit to millilitres.

        ml passes through; everything else goes through grams() and the
        ingredient's density (default 1.03 g/ml).
        """
        if amount is None or amount <= 0:
            return 0.0
        if (unit or "").strip().lower() == IngredientUnit.MILLILITERS.value:
            return float(amount)
        density = ingredient.density_g_per_ml or DEFAULT_DENSITY_G_PER_ML
        return UnitConversionService.grams(amount, unit, ingredient) / density
