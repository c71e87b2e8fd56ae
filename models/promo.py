import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import (Column, String, Integer, Float, Boolean, DateTime, ForeignKey, CheckConstraint,
                        JSON, Text)
from sqlalchemy.orm import relationship

from models.base import Base
from enums.promo_type import PromoType


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Promo(Base):
    """
    Admin-authored promo definition.

    Only the discount column selected by promo_type is populated:
    discount_percentage (percentage), discount_cents (fixed_amount),
    bundle_price_cents (bundle), none (free_addon).
    """
    __tablename__ = 'promos'

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    promo_type = Column(String(20), nullable=False)

    discount_percentage = Column(Float, nullable=True)
    discount_cents = Column(Integer, nullable=True)
    bundle_price_cents = Column(Integer, nullable=True)

    min_order_cents = Column(Integer, nullable=True)
    max_discount_cents = Column(Integer, nullable=True)
    usage_limit_per_customer = Column(Integer, nullable=True)
    usage_limit_total = Column(Integer, nullable=True)

    valid_from = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    # NULL = all drinks
    applicable_drink_ids = Column(JSON, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    priority = Column(Integer, nullable=False, default=0)  # Higher = listed first
    terms = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    bundles = relationship("PromoBundle", back_populates="promo", cascade="all, delete-orphan")
    variants = relationship("PromoVariant", back_populates="promo", cascade="all, delete-orphan")
    free_addons = relationship("PromoFreeAddon", back_populates="promo", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("promo_type IN ('percentage', 'fixed_amount', 'bundle', 'free_addon')",
                        name='check_promo_type'),
        CheckConstraint('discount_percentage IS NULL OR (discount_percentage >= 0 AND discount_percentage <= 100)',
                        name='check_discount_percentage_range'),
        CheckConstraint('discount_cents IS NULL OR discount_cents >= 0', name='check_discount_cents_non_negative'),
        CheckConstraint('bundle_price_cents IS NULL OR bundle_price_cents >= 0',
                        name='check_bundle_price_non_negative'),
        CheckConstraint('min_order_cents IS NULL OR min_order_cents >= 0', name='check_min_order_non_negative'),
        CheckConstraint('max_discount_cents IS NULL OR max_discount_cents >= 0',
                        name='check_max_discount_non_negative'),
        CheckConstraint('usage_limit_per_customer IS NULL OR usage_limit_per_customer > 0',
                        name='check_usage_limit_per_customer_positive'),
        CheckConstraint('usage_limit_total IS NULL OR usage_limit_total > 0',
                        name='check_usage_limit_total_positive'),
    )


class PromoBundle(Base):
    """Required cart composition for a bundle promo (1:1)."""
    __tablename__ = 'promo_bundles'

    id = Column(String(36), primary_key=True, default=_uuid)
    promo_id = Column(String(36), ForeignKey("promos.id", ondelete="CASCADE"), nullable=False)
    bundle_name = Column(String(100), nullable=False, default="")
    items_quantity = Column(Integer, nullable=False, default=2)
    size_12oz_quantity = Column(Integer, nullable=False, default=0)
    size_16oz_quantity = Column(Integer, nullable=False, default=0)
    allow_variants = Column(Boolean, nullable=False, default=False)

    promo = relationship("Promo", back_populates="bundles")


class PromoVariant(Base):
    """Named price option of a bundle that asks the customer to choose."""
    __tablename__ = 'promo_variants'

    id = Column(String(36), primary_key=True, default=_uuid)
    promo_id = Column(String(36), ForeignKey("promos.id", ondelete="CASCADE"), nullable=False)
    variant_name = Column(String(50), nullable=False)
    price_cents = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    promo = relationship("Promo", back_populates="variants")

    __table_args__ = (
        CheckConstraint('price_cents >= 0', name='check_variant_price_non_negative'),
    )


class PromoFreeAddon(Base):
    """Free add-on configuration (1:1 with a free_addon promo)."""
    __tablename__ = 'promo_free_addons'

    id = Column(String(36), primary_key=True, default=_uuid)
    promo_id = Column(String(36), ForeignKey("promos.id", ondelete="CASCADE"), nullable=False)
    qualifying_drink_id = Column(String(36), nullable=True)
    qualifying_size_ml = Column(Integer, nullable=True)
    free_addon_id = Column(String(36), ForeignKey("ingredients.id"), nullable=True)
    free_addon_quantity = Column(Integer, nullable=False, default=1)
    max_free_quantity = Column(Integer, nullable=False, default=1)
    can_choose_addon = Column(Boolean, nullable=False, default=False)

    promo = relationship("Promo", back_populates="free_addons")


class PromoBundleDTO(BaseModel):
    id: str | None = None
    promo_id: str | None = None
    bundle_name: str = ""
    items_quantity: int = 2
    size_12oz_quantity: int = 0
    size_16oz_quantity: int = 0
    allow_variants: bool = False


class PromoVariantDTO(BaseModel):
    id: str
    promo_id: str | None = None
    variant_name: str
    price_cents: int
    is_active: bool = True


class PromoFreeAddonDTO(BaseModel):
    id: str | None = None
    promo_id: str | None = None
    qualifying_drink_id: str | None = None
    qualifying_size_ml: int | None = None
    free_addon_id: str | None = None
    free_addon_quantity: int = 1
    max_free_quantity: int = 1
    can_choose_addon: bool = False


class PromoDTO(BaseModel):
    id: str
    code: str
    name: str
    description: str | None = None
    promo_type: PromoType
    discount_percentage: float | None = None
    discount_cents: int | None = None
    bundle_price_cents: int | None = None
    min_order_cents: int | None = None
    max_discount_cents: int | None = None
    usage_limit_per_customer: int | None = None
    usage_limit_total: int | None = None
    valid_from: datetime
    valid_until: datetime | None = None
    applicable_drink_ids: list[str] | None = None
    is_active: bool = True
    priority: int = 0
    terms: str | None = None

    # Relations, loaded by PromoRepository.get_by_code_with_relations()
    bundle: PromoBundleDTO | None = None
    free_addon: PromoFreeAddonDTO | None = None
    variants: list[PromoVariantDTO] = Field(default_factory=list)

    @field_validator('code', mode='before')
    @classmethod
    def validate_code(cls, v):
        """
        Normalize promo code.

        Codes are case-insensitive (stored upper case) and may not contain
        whitespace.
        """
        if not isinstance(v, str):
            raise ValueError(f"Code must be a string, got {type(v)}")
        normalized = v.strip().upper()
        if not normalized:
            raise ValueError("Code cannot be empty")
        if any(ch.isspace() for ch in normalized):
            raise ValueError(f"Code '{v}' must not contain whitespace")
        return normalized

    @field_validator('valid_from', 'valid_until', mode='after')
    @classmethod
    def assume_utc(cls, v):
        # SQLite drops tzinfo; stored timestamps are UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode='after')
    def check_discount_fields(self):
        """Only the discount field selected by promo_type may be populated."""
        selected = self.promo_type.discount_field
        for field_name in ('discount_percentage', 'discount_cents', 'bundle_price_cents'):
            if field_name != selected and getattr(self, field_name) is not None:
                raise ValueError(
                    f"{self.promo_type.value} promo '{self.code}' must not set {field_name}"
                )
        if self.discount_percentage is not None and not 0 <= self.discount_percentage <= 100:
            raise ValueError(f"discount_percentage must be within 0..100 (got: {self.discount_percentage})")
        return self

    @property
    def active_variants(self) -> list[PromoVariantDTO]:
        return [v for v in self.variants if v.is_active]
