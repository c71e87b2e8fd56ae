from enum import Enum


class PricingMode(str, Enum):
    FLAT = "flat"            # price_cents, independent of amount
    PER_GRAM = "per_gram"    # cents_per x converted grams
    PER_ML = "per_ml"        # cents_per x converted millilitres
    PER_UNIT = "per_unit"    # cents_per x raw display amount
