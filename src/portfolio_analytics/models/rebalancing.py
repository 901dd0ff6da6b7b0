from enum import StrEnum

from pydantic import BaseModel, Field


class Action(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class TargetAllocation(BaseModel):
    weight: float = Field(default=0.0, ge=0.0)
    group: str | None = None


class AllocationAction(BaseModel):
    symbol: str
    value: float
    current_weight: float
    target_weight: float
    target_value: float
    delta: float
    drift_pct: float
    action: Action
    group: str
    price: float | None = None
    shares: float | None = None


class GroupAllocation(BaseModel):
    group: str
    current_weight: float = 0.0
    target_weight: float = 0.0
    value: float = 0.0


class RebalancePlan(BaseModel):
    actions: list[AllocationAction] = []
    groups: list[GroupAllocation] = []
    cash_allocation: dict[str, float] = {}
    total_target_weight: float = 0.0
    new_cash: float = 0.0
