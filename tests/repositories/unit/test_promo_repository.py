"""
Unit tests for promo, usage and ingredient repositories.

Runs against in-memory SQLite, through both the sync Session and the
aiosqlite AsyncSession accepted by the db.session_* helpers.
"""

import logging
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..')))

from enums.pricing_mode import PricingMode
from enums.promo_type import PromoType
from models.ingredient import Ingredient, IngredientNutrition, IngredientPricing
from models.promo import Promo, PromoBundle, PromoVariant, PromoFreeAddon
from models.promo_usage import PromoUsage, PromoUsageDTO
from repositories.ingredient import IngredientRepository
from repositories.ingredient_pricing import IngredientPricingRepository
from repositories.promo import PromoRepository
from repositories.promo_usage import PromoUsageRepository

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def promo_row(code: str, promo_type: str = "percentage", **kwargs) -> Promo:
    defaults = dict(
        id=f"promo-{code.lower()}",
        code=code,
        name=f"{code} promo",
        promo_type=promo_type,
        valid_from=NOW - timedelta(days=1),
    )
    if promo_type == "percentage":
        defaults["discount_percentage"] = 10
    defaults.update(kwargs)
    return Promo(**defaults)


class TestPromoRepository:

    @pytest.mark.asyncio
    async def test_get_by_code_with_relations(self, session):
        promo = promo_row("DUO", "bundle", bundle_price_cents=41000)
        promo.bundles.append(PromoBundle(bundle_name="Duo", items_quantity=2, size_16oz_quantity=2,
                                         allow_variants=True))
        promo.variants.append(PromoVariant(id="v-1", variant_name="Classic", price_cents=39000))
        promo.variants.append(PromoVariant(id="v-2", variant_name="Old", price_cents=35000, is_active=False))
        session.add(promo)
        session.commit()

        dto = await PromoRepository.get_by_code_with_relations("DUO", session)

        assert dto.promo_type == PromoType.BUNDLE
        assert dto.bundle_price_cents == 41000
        assert dto.bundle.size_16oz_quantity == 2
        assert dto.bundle.allow_variants is True
        assert dto.free_addon is None
        assert {v.id for v in dto.variants} == {"v-1", "v-2"}
        assert [v.id for v in dto.active_variants] == ["v-1"]

    @pytest.mark.asyncio
    async def test_free_addon_relation(self, session):
        session.add(Ingredient(id="ing-oats", name="Oats", category="grain"))
        promo = promo_row("FREEOATS", "free_addon")
        promo.free_addons.append(PromoFreeAddon(free_addon_id="ing-oats", free_addon_quantity=2, max_free_quantity=2))
        session.add(promo)
        session.commit()

        dto = await PromoRepository.get_by_code_with_relations("FREEOATS", session)

        assert dto.free_addon.free_addon_id == "ing-oats"
        assert dto.free_addon.free_addon_quantity == 2
        assert dto.bundle is None

    @pytest.mark.asyncio
    async def test_unknown_or_inactive_code(self, session):
        session.add(promo_row("PAUSED", is_active=False))
        session.commit()

        assert await PromoRepository.get_by_code_with_relations("PAUSED", session) is None
        assert await PromoRepository.get_by_code_with_relations("NOPE", session) is None

    @pytest.mark.asyncio
    async def test_invalid_row_is_skipped_and_logged(self, session, caplog):
        session.add(promo_row("BROKEN", discount_cents=500))
        session.commit()

        with caplog.at_level(logging.ERROR, logger="repositories.promo"):
            assert await PromoRepository.get_by_code_with_relations("BROKEN", session) is None
        assert "BROKEN" in caplog.text
        assert "invalid configuration" in caplog.text

    @pytest.mark.asyncio
    async def test_get_active_in_window(self, session):
        session.add_all([
            promo_row("LOW", priority=1),
            promo_row("HIGH", priority=5, valid_until=NOW + timedelta(days=1)),
            promo_row("ALSOLOW", priority=1),
            promo_row("FUTURE", valid_from=NOW + timedelta(hours=1)),
            promo_row("ENDED", valid_until=NOW),
            promo_row("OFF", is_active=False),
        ])
        session.commit()

        promos = await PromoRepository.get_active_in_window(NOW, session)

        assert [p.code for p in promos] == ["HIGH", "ALSOLOW", "LOW"]

    @pytest.mark.asyncio
    async def test_async_session(self, async_session):
        async_session.add(promo_row("ASYNC"))
        await async_session.commit()

        dto = await PromoRepository.get_by_code_with_relations("ASYNC", async_session)

        assert dto.code == "ASYNC"
        assert dto.valid_from.tzinfo is not None


class TestPromoUsageRepository:

    @pytest.fixture
    def promo(self, session):
        promo = promo_row("SAVE10")
        session.add(promo)
        session.commit()
        return promo

    @pytest.mark.asyncio
    async def test_counts(self, session, promo):
        for order_id, customer in [("o-1", "a@example.com"), ("o-2", "a@example.com"), ("o-3", None)]:
            await PromoUsageRepository.create(
                PromoUsageDTO(promo_id=promo.id, order_id=order_id, customer_identifier=customer,
                              discount_cents=100),
                session
            )
        session.commit()

        assert await PromoUsageRepository.count_by_promo(promo.id, session) == 3
        assert await PromoUsageRepository.count_by_promo_and_customer(promo.id, "a@example.com", session) == 2
        assert await PromoUsageRepository.count_by_promo_and_customer(promo.id, "b@example.com", session) == 0
        assert await PromoUsageRepository.exists_for_order(promo.id, "o-2", session) is True
        assert await PromoUsageRepository.exists_for_order(promo.id, "o-9", session) is False

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, session, promo):
        usage_id = await PromoUsageRepository.create(
            PromoUsageDTO(promo_id=promo.id, order_id="o-1", discount_cents=250), session
        )
        assert session.get(PromoUsage, usage_id).discount_cents == 250

    @pytest.mark.asyncio
    async def test_one_row_per_order(self, session, promo):
        dto = PromoUsageDTO(promo_id=promo.id, order_id="o-1", discount_cents=100)
        await PromoUsageRepository.create(dto, session)

        with pytest.raises(IntegrityError):
            await PromoUsageRepository.create(dto, session)


class TestIngredientRepositories:

    @pytest.fixture
    def ingredients(self, session):
        session.add_all([
            Ingredient(id="ing-pb", name="Peanut Butter", category="spread", grams_per_tbsp=16,
                       allergen_tags=["peanut"]),
            Ingredient(id="ing-milk", name="Milk", category="dairy", density_g_per_ml=1.03),
            IngredientNutrition(ingredient_id="ing-pb", per_100g_energy_kcal=588, per_100g_protein_g=25,
                                per_100g_fat_g=50, per_100g_carbs_g=20),
            IngredientPricing(ingredient_id="ing-pb", pricing_mode="per_unit", cents_per=1500, unit_label="tbsp"),
            IngredientPricing(ingredient_id="ing-pb", pricing_mode="flat", price_cents=2000, is_active=False),
            IngredientPricing(ingredient_id="ing-milk", pricing_mode="per_ml", cents_per=0.2),
        ])
        session.commit()

    @pytest.mark.asyncio
    async def test_get_by_id(self, session, ingredients):
        ingredient = await IngredientRepository.get_by_id("ing-pb", session)
        assert ingredient.name == "Peanut Butter"
        assert ingredient.grams_per_tbsp == 16
        assert ingredient.allergen_tags == ["peanut"]
        assert await IngredientRepository.get_by_id("ing-none", session) is None

    @pytest.mark.asyncio
    async def test_get_by_ids(self, session, ingredients):
        loaded = await IngredientRepository.get_by_ids(["ing-pb", "ing-milk", "ing-pb", "ing-none"], session)
        assert set(loaded) == {"ing-pb", "ing-milk"}
        assert loaded["ing-milk"].allergen_tags == []
        assert await IngredientRepository.get_by_ids([], session) == {}

    @pytest.mark.asyncio
    async def test_get_nutrition_by_ids(self, session, ingredients):
        nutrition = await IngredientRepository.get_nutrition_by_ids(["ing-pb", "ing-milk"], session)
        assert set(nutrition) == {"ing-pb"}
        assert nutrition["ing-pb"].per_100g_energy_kcal == 588
        # Optional nutrients missing in the row read as zero
        assert nutrition["ing-pb"].per_100g_sodium_mg == 0.0

    @pytest.mark.asyncio
    async def test_pricing_rows_exclude_inactive(self, session, ingredients):
        rows = await IngredientPricingRepository.get_by_ingredient_ids(["ing-pb", "ing-milk"], session)
        assert {(row.ingredient_id, row.pricing_mode) for row in rows} == {
            ("ing-pb", PricingMode.PER_UNIT),
            ("ing-milk", PricingMode.PER_ML),
        }
        assert await IngredientPricingRepository.get_by_ingredient_ids([], session) == []
