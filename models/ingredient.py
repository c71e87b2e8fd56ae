import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, JSON, Integer
from sqlalchemy.orm import relationship

from models.base import Base
from enums.pricing_mode import PricingMode


def _uuid() -> str:
    return str(uuid.uuid4())


class Ingredient(Base):
    """
    Ingredient that can appear in a drink recipe or as an add-on.

    grams_per_unit / grams_per_tbsp / density_g_per_ml are optional; unit
    conversion falls back to fixed defaults when they are missing.
    """
    __tablename__ = 'ingredients'

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    unit_default = Column(String(10), nullable=False, default="g")
    grams_per_unit = Column(Float, nullable=True)
    grams_per_tbsp = Column(Float, nullable=True)
    grams_per_tsp = Column(Float, nullable=True)
    grams_per_cup = Column(Float, nullable=True)
    density_g_per_ml = Column(Float, nullable=True)
    allergen_tags = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)

    nutrition = relationship("IngredientNutrition", back_populates="ingredient", uselist=False,
                             cascade="all, delete-orphan")
    pricing = relationship("IngredientPricing", back_populates="ingredient", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('grams_per_unit IS NULL OR grams_per_unit > 0', name='check_grams_per_unit_positive'),
        CheckConstraint('density_g_per_ml IS NULL OR density_g_per_ml > 0', name='check_density_positive'),
    )


class IngredientNutrition(Base):
    """Nutrition facts for one ingredient, always normalized per 100 g."""
    __tablename__ = 'ingredient_nutrition'

    ingredient_id = Column(String(36), ForeignKey("ingredients.id", ondelete="CASCADE"), primary_key=True)
    per_100g_energy_kcal = Column(Float, nullable=False, default=0.0)
    per_100g_protein_g = Column(Float, nullable=False, default=0.0)
    per_100g_fat_g = Column(Float, nullable=False, default=0.0)
    per_100g_carbs_g = Column(Float, nullable=False, default=0.0)
    per_100g_sugars_g = Column(Float, nullable=True)
    per_100g_fiber_g = Column(Float, nullable=True)
    per_100g_sodium_mg = Column(Float, nullable=True)

    ingredient = relationship("Ingredient", back_populates="nutrition")


class IngredientPricing(Base):
    """
    Rate row for one ingredient and one pricing mode.

    flat uses price_cents; per_gram / per_ml / per_unit use cents_per
    (per_unit additionally matches on unit_label).
    """
    __tablename__ = 'ingredient_pricing'

    id = Column(String(36), primary_key=True, default=_uuid)
    ingredient_id = Column(String(36), ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False)
    pricing_mode = Column(String(10), nullable=False)
    price_cents = Column(Integer, nullable=True)
    cents_per = Column(Float, nullable=True)
    unit_label = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ingredient = relationship("Ingredient", back_populates="pricing")

    __table_args__ = (
        CheckConstraint("pricing_mode IN ('flat', 'per_gram', 'per_ml', 'per_unit')",
                        name='check_pricing_mode'),
        CheckConstraint('price_cents IS NULL OR price_cents >= 0', name='check_price_cents_non_negative'),
        CheckConstraint('cents_per IS NULL OR cents_per >= 0', name='check_cents_per_non_negative'),
    )


class IngredientDTO(BaseModel):
    id: str
    name: str
    category: str = ""
    unit_default: str = "g"
    grams_per_unit: float | None = None
    grams_per_tbsp: float | None = None
    grams_per_tsp: float | None = None
    grams_per_cup: float | None = None
    density_g_per_ml: float | None = None
    allergen_tags: list[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator('allergen_tags', mode='before')
    @classmethod
    def none_tags_to_empty(cls, v):
        return v or []


class IngredientNutritionDTO(BaseModel):
    """
    Per-100g nutrition row.

    Missing optional nutrients read as 0 so totals stay comparable with
    existing data.
    """
    ingredient_id: str
    per_100g_energy_kcal: float = 0.0
    per_100g_protein_g: float = 0.0
    per_100g_fat_g: float = 0.0
    per_100g_carbs_g: float = 0.0
    per_100g_sugars_g: float = 0.0
    per_100g_fiber_g: float = 0.0
    per_100g_sodium_mg: float = 0.0

    @field_validator(
        'per_100g_energy_kcal', 'per_100g_protein_g', 'per_100g_fat_g', 'per_100g_carbs_g',
        'per_100g_sugars_g', 'per_100g_fiber_g', 'per_100g_sodium_mg',
        mode='before'
    )
    @classmethod
    def none_to_zero(cls, v):
        return 0.0 if v is None else v


class IngredientPricingDTO(BaseModel):
    id: str | None = None
    ingredient_id: str
    pricing_mode: PricingMode
    price_cents: int | None = None
    cents_per: float | None = None
    unit_label: str | None = None
    is_active: bool = True
    updated_at: datetime | None = None
