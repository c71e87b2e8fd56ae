"""
Unit tests for AddonFormatterService

Tests add-on name collapsing, ingredient line grouping and truncation.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..')))

from enums.line_role import LineRole
from models.cart import LineIngredientDTO, GroupedLineDTO
from services.addon_formatter import AddonFormatterService


def line(name, amount, unit, ingredient_id="ing-1") -> LineIngredientDTO:
    return LineIngredientDTO(ingredient_id=ingredient_id, amount=amount, unit=unit, role=LineRole.EXTRA, name=name)


class TestFormatAddonList:

    def test_repeats_collapsed_case_insensitively(self):
        result = AddonFormatterService.format_addon_list(["Oats", "oats", "Chia", "OATS"])
        assert result == "Oats (x3), Chia"

    def test_first_spelling_wins(self):
        assert AddonFormatterService.format_addon_list(["whey", "Whey"]) == "whey (x2)"

    @pytest.mark.parametrize("names", [[], ["", "  "], [None]])
    def test_empty(self, names):
        assert AddonFormatterService.format_addon_list(names) == "none"

    def test_truncated_with_remaining_count(self):
        names = ["Peanut Butter", "Chia Seeds", "Oats", "Whey Protein"]
        result = AddonFormatterService.format_addon_list(names, max_chars=30)
        assert result == "Peanut Butter, Chia Seeds +2 more"

    def test_nothing_fits(self):
        result = AddonFormatterService.format_addon_list(["Extra Dark Chocolate Shavings"], max_chars=10)
        assert result == "+1 more"

    def test_fits_exactly(self):
        assert AddonFormatterService.format_addon_list(["Oats", "Chia"], max_chars=10) == "Oats, Chia"


class TestGroupIngredientLines:

    def test_groups_by_name_and_unit(self):
        groups = AddonFormatterService.group_ingredient_lines([
            line("Peanut Butter", 2, "tbsp"),
            line("peanut butter", 2, "TBSP"),
            line("Peanut Butter", 30, "g"),
            line("Milk", 250, "ml", ingredient_id="ing-2"),
        ])

        assert groups == [
            GroupedLineDTO(name="Peanut Butter", amount=4, unit="tbsp", count=2),
            GroupedLineDTO(name="Peanut Butter", amount=30, unit="g"),
            GroupedLineDTO(name="Milk", amount=250, unit="ml"),
        ]

    def test_missing_name(self):
        groups = AddonFormatterService.group_ingredient_lines([line(None, 5, "g")])
        assert groups[0].name == "Unknown"

    def test_empty(self):
        assert AddonFormatterService.group_ingredient_lines([]) == []


class TestFormatGroupedLines:

    def test_format(self):
        groups = AddonFormatterService.group_ingredient_lines([
            line("Peanut Butter", 2, "tbsp"),
            line("Peanut Butter", 2, "tbsp"),
            line("Milk", 250, "ml", ingredient_id="ing-2"),
            line("Honey", 7.5, "g", ingredient_id="ing-3"),
        ])

        result = AddonFormatterService.format_grouped_lines(groups)

        assert result == "Peanut Butter (x2) - 4 tbsp, Milk - 250 ml, Honey - 7.5 g"

    def test_line_without_unit(self):
        groups = [GroupedLineDTO(name="Ice", amount=1, unit="")]
        assert AddonFormatterService.format_grouped_lines(groups) == "Ice"

    def test_empty(self):
        assert AddonFormatterService.format_grouped_lines([]) == "none"

    def test_truncated(self):
        groups = [GroupedLineDTO(name=f"Ingredient {i}", amount=10, unit="g") for i in range(10)]
        result = AddonFormatterService.format_grouped_lines(groups, max_chars=40)
        assert result == "Ingredient 0 - 10 g, Ingredient 1 - 10 g +8 more"
