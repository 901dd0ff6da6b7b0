from pydantic import BaseModel, Field


class Position(BaseModel):
    """One holding; monetary fields are in the portfolio's base currency."""

    symbol: str
    value: float = Field(default=0.0, ge=0.0)
    quantity: float = 0.0
    cost_basis: float = 0.0


class Quote(BaseModel):
    symbol: str
    price: float
    ref_2y: float | None = None
    change_pct: float | None = None
