from enum import Enum


class IngredientUnit(str, Enum):
    """
    Units an ingredient amount can be entered in.

    Unknown unit strings are not rejected: conversion treats them as grams.
    Use from_string() when a strict lookup is wanted (admin input).
    """

    GRAMS = "g"
    MILLILITERS = "ml"
    TABLESPOON = "tbsp"
    TEASPOON = "tsp"
    CUP = "cup"
    SCOOP = "scoop"
    PIECE = "piece"

    @classmethod
    def from_string(cls, value: str) -> 'IngredientUnit':
        """
        Convert string to IngredientUnit enum.

        Handles case-insensitive matching and whitespace.

        Raises:
            ValueError: If value is not a valid unit

        Examples:
            >>> IngredientUnit.from_string(" TBSP ")
            IngredientUnit.TABLESPOON
        """
        if not value or not value.strip():
            raise ValueError("Unit cannot be empty")

        normalized = value.strip().lower()
        for unit in cls:
            if unit.value == normalized:
                return unit

        valid_units = [u.value for u in cls]
        raise ValueError(
            f"Invalid unit '{value}'. Valid units: {', '.join(valid_units)}"
        )

    @property
    def is_discrete(self) -> bool:
        """True for units converted through a grams-per-unit factor."""
        return self in (
            IngredientUnit.TABLESPOON,
            IngredientUnit.TEASPOON,
            IngredientUnit.CUP,
            IngredientUnit.SCOOP,
            IngredientUnit.PIECE,
        )
