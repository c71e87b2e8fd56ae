"""
Unit tests for money helpers.

Run with:
    pytest tests/utils/unit/test_money.py -v
"""

import os
import sys
from decimal import Decimal
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..')))

from utils.money import round_half_up, format_cents, pesos_to_cents


class TestRoundHalfUp:

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (1499.5, 1500),
        (1499.49, 1499),
        (Decimal("7.5"), 8),
        (0, 0),
    ])
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_differs_from_bankers_rounding(self):
        assert round(2.5) == 2
        assert round_half_up(2.5) == 3


class TestFormatCents:

    def test_formats_pesos(self):
        with patch("utils.money.config.CURRENCY_SYMBOL", "₱"):
            assert format_cents(41000) == "₱410.00"
            assert format_cents(123456) == "₱1,234.56"
            assert format_cents(5) == "₱0.05"

    def test_none_is_zero(self):
        with patch("utils.money.config.CURRENCY_SYMBOL", "₱"):
            assert format_cents(None) == "₱0.00"

    def test_negative_amount(self):
        with patch("utils.money.config.CURRENCY_SYMBOL", "₱"):
            assert format_cents(-1500) == "-₱15.00"


class TestPesosToCents:

    @pytest.mark.parametrize("value,expected", [
        ("410", 41000),
        ("410.50", 41050),
        (" 1,234.56 ", 123456),
        (12.5, 1250),
        (3, 300),
        ("0.005", 1),
    ])
    def test_valid_amounts(self, value, expected):
        assert pesos_to_cents(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "-1", "NaN", "inf"])
    def test_invalid_amounts(self, value):
        with pytest.raises(ValueError):
            pesos_to_cents(value)
