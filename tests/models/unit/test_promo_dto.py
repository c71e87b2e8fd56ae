"""
Unit tests for promo DTO validation.

Tests cover:
- Promo code normalization
- One discount field per promo type
- Percentage range
- UTC handling of stored timestamps
- Request/result helpers
"""

import os
import sys
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..')))

from enums.promo_type import PromoType
from models.cart import CartItemDTO
from models.ingredient import IngredientNutritionDTO
from models.promo import PromoDTO, PromoVariantDTO
from models.promo_application import PromoApplicationRequestDTO, PromoApplicationResultDTO

VALID_FROM = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_promo(**kwargs) -> PromoDTO:
    defaults = dict(id="promo-1", code="SAVE10", name="Save 10", promo_type=PromoType.PERCENTAGE,
                    discount_percentage=10, valid_from=VALID_FROM)
    defaults.update(kwargs)
    return PromoDTO(**defaults)


class TestCodeNormalization:

    def test_trimmed_and_upper_cased(self):
        assert make_promo(code="  gymStudy ").code == "GYMSTUDY"

    @pytest.mark.parametrize("code", ["", "   "])
    def test_empty_rejected(self, code):
        with pytest.raises(ValidationError, match="Code cannot be empty"):
            make_promo(code=code)

    def test_inner_whitespace_rejected(self):
        with pytest.raises(ValidationError, match="must not contain whitespace"):
            make_promo(code="SAVE 10")

    def test_non_string_rejected(self):
        with pytest.raises(ValidationError):
            make_promo(code=1234)


class TestDiscountFields:

    def test_fixed_amount(self):
        promo = make_promo(promo_type=PromoType.FIXED_AMOUNT, discount_percentage=None, discount_cents=5000)
        assert promo.discount_cents == 5000

    def test_bundle(self):
        promo = make_promo(promo_type="bundle", discount_percentage=None, bundle_price_cents=41000)
        assert promo.promo_type == PromoType.BUNDLE

    def test_free_addon_has_no_discount_field(self):
        with pytest.raises(ValidationError, match="must not set discount_percentage"):
            make_promo(promo_type=PromoType.FREE_ADDON)

    def test_two_fields_rejected(self):
        with pytest.raises(ValidationError, match="must not set discount_cents"):
            make_promo(discount_cents=500)

    @pytest.mark.parametrize("value", [-1, 100.5])
    def test_percentage_out_of_range(self, value):
        with pytest.raises(ValidationError, match="within 0..100"):
            make_promo(discount_percentage=value)

    @pytest.mark.parametrize("value", [0, 100])
    def test_percentage_bounds(self, value):
        assert make_promo(discount_percentage=value).discount_percentage == value

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            make_promo(promo_type="buy_one_get_one")


class TestTimestamps:

    def test_naive_timestamps_are_utc(self):
        promo = make_promo(valid_from=datetime(2026, 1, 1), valid_until=datetime(2026, 2, 1))
        assert promo.valid_from.tzinfo == timezone.utc
        assert promo.valid_until == datetime(2026, 2, 1, tzinfo=timezone.utc)

    def test_open_ended(self):
        assert make_promo().valid_until is None


class TestVariants:

    def test_active_variants(self):
        promo = make_promo(
            promo_type=PromoType.BUNDLE, discount_percentage=None, bundle_price_cents=41000,
            variants=[
                PromoVariantDTO(id="v-1", variant_name="Classic", price_cents=39000),
                PromoVariantDTO(id="v-2", variant_name="Retired", price_cents=30000, is_active=False),
            ]
        )
        assert [v.id for v in promo.active_variants] == ["v-1"]


class TestApplicationDTOs:

    def test_normalized_code(self):
        request = PromoApplicationRequestDTO(code=" save10 ", subtotal_cents=100)
        assert request.normalized_code == "SAVE10"
        assert request.cart_items == []

    def test_failure_keeps_subtotal(self):
        result = PromoApplicationResultDTO.failure(45000, "This promo has expired")
        assert result.success is False
        assert result.discount_cents == 0
        assert result.new_subtotal_cents == 45000
        assert result.errors == ["This promo has expired"]
        assert result.applied_promo is None

    def test_failure_without_message(self):
        assert PromoApplicationResultDTO.failure(100).errors == []

    def test_rpc_payload_subset(self):
        item = CartItemDTO(item_name="Choco", drink_id="drink-1", size_ml=355, unit_price_cents=18000)
        assert item.to_rpc_payload() == {"drink_id": "drink-1", "size_ml": 355}

    def test_nutrition_nulls_read_as_zero(self):
        row = IngredientNutritionDTO(ingredient_id="ing-1", per_100g_energy_kcal=100, per_100g_fiber_g=None)
        assert row.per_100g_fiber_g == 0.0
