from pydantic import BaseModel, Field


class LinePricingResultDTO(BaseModel):
    """Priced extras of a cart item; unpriced lines are listed, not counted as 0."""
    total_cents: int = 0
    priced_lines: int = 0
    unpriced_ingredient_ids: list[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.unpriced_ingredient_ids
