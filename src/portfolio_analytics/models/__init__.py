from portfolio_analytics.models.correlation import CorrelationBand, CorrelationMatrix
from portfolio_analytics.models.portfolio import Position, Quote
from portfolio_analytics.models.rebalancing import (
    Action,
    AllocationAction,
    GroupAllocation,
    RebalancePlan,
    TargetAllocation,
)
from portfolio_analytics.models.simulation import SimulationConfig, SimulationResult

__all__ = [
    "Action",
    "AllocationAction",
    "CorrelationBand",
    "CorrelationMatrix",
    "GroupAllocation",
    "Position",
    "Quote",
    "RebalancePlan",
    "SimulationConfig",
    "SimulationResult",
    "TargetAllocation",
]
