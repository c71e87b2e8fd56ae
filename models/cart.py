from pydantic import BaseModel, Field

from enums.line_role import LineRole


class LineIngredientDTO(BaseModel):
    """
    One ingredient entry of a recipe or cart item.

    Ephemeral: built per order/preview, never stored on its own.
    """
    ingredient_id: str
    amount: float
    unit: str
    role: LineRole = LineRole.BASE
    name: str | None = None

    @property
    def is_extra(self) -> bool:
        return self.role == LineRole.EXTRA


class CartItemDTO(BaseModel):
    """Single drink in the cart, as seen by the promo engine."""
    item_name: str = ""
    drink_id: str | None = None
    size_ml: int | None = None
    unit_price_cents: int = 0
    lines: list[LineIngredientDTO] = Field(default_factory=list)

    def to_rpc_payload(self) -> dict:
        """Subset sent to the validate_apply_promo procedure."""
        return {"drink_id": self.drink_id, "size_ml": self.size_ml}


class GroupedLineDTO(BaseModel):
    """Lines with the same (name, unit) merged for compact display."""
    name: str
    amount: float
    unit: str
    count: int = 1
