"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.ingredient import Ingredient, IngredientNutrition, IngredientPricing
from models.promo import Promo, PromoBundle, PromoVariant, PromoFreeAddon
from models.promo_usage import PromoUsage

__all__ = [
    'Base',
    'Ingredient',
    'IngredientNutrition',
    'IngredientPricing',
    'Promo',
    'PromoBundle',
    'PromoVariant',
    'PromoFreeAddon',
    'PromoUsage',
]
