from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping

from portfolio_analytics.config import AnalyticsConfig
from portfolio_analytics.models.portfolio import Position
from portfolio_analytics.models.rebalancing import (
    Action,
    AllocationAction,
    GroupAllocation,
    RebalancePlan,
    TargetAllocation,
)

logger = logging.getLogger(__name__)


def drift_pct(current_weight: float, target_weight: float) -> float:
    """Drift from target in percent; -100 when held without a target."""
    if target_weight > 0:
        return (current_weight - target_weight) / target_weight * 100
    if current_weight > 0:
        return -100.0
    return 0.0


def suggest_shares(delta: float, price: float | None) -> float | None:
    """Shares needed to close `delta`, or None without a positive price."""
    if price is None or not price > 0:
        return None
    # half-up to one decimal
    return math.floor(abs(delta) / price * 10 + 0.5) / 10


def group_allocations(actions: list[AllocationAction]) -> list[GroupAllocation]:
    """Per-group weight and value totals, largest group first."""
    groups: dict[str, GroupAllocation] = {}
    for a in actions:
        g = groups.setdefault(a.group, GroupAllocation(group=a.group))
        g.current_weight += a.current_weight
        g.target_weight += a.target_weight
        g.value += a.value
    return sorted(groups.values(), key=lambda g: -g.value)


def distribute_cash(
    actions: list[AllocationAction], new_cash: float
) -> dict[str, float]:
    """Split incoming cash over BUY actions in proportion to their buy demand."""
    if new_cash <= 0:
        return {}
    buys = [a for a in actions if a.action == Action.BUY]
    demand = sum(a.delta for a in buys)
    if not buys or demand <= 0:
        return {}
    return {a.symbol: a.delta / demand * new_cash for a in buys}


def flag_drift(
    actions: list[AllocationAction],
    threshold: float = 5.0,
    mode: str = "both",
) -> list[AllocationAction]:
    if mode not in ("buy", "sell", "both"):
        raise ValueError(f"mode must be 'buy', 'sell' or 'both', got {mode!r}")
    wanted = {
        "buy": {Action.BUY},
        "sell": {Action.SELL},
        "both": {Action.BUY, Action.SELL, Action.HOLD},
    }[mode]
    return [a for a in actions if abs(a.drift_pct) > threshold and a.action in wanted]


class RebalanceCalculator:
    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self.config = config or AnalyticsConfig()

    def compute_actions(
        self,
        positions: list[Position],
        targets: Mapping[str, TargetAllocation],
        new_cash: float = 0.0,
        prices: Mapping[str, float] | None = None,
        infer_group: Callable[[str], str | None] | None = None,
    ) -> list[AllocationAction]:
        values = self._aggregate(positions)
        invested = sum(values.values())
        total = invested + new_cash
        if total <= 0:
            return []

        prices = prices or {}
        actions: list[AllocationAction] = []
        for symbol, value in values.items():
            target = targets.get(symbol)
            tgt = target.weight if target is not None else 0.0
            cur = value / invested if invested > 0 else 0.0
            target_value = total * tgt
            delta = target_value - value

            if delta > 0:
                action = Action.BUY
            elif delta < 0:
                action = Action.SELL
            else:
                action = Action.HOLD

            price = prices.get(symbol)
            actions.append(
                AllocationAction(
                    symbol=symbol,
                    value=value,
                    current_weight=cur,
                    target_weight=tgt,
                    target_value=target_value,
                    delta=delta,
                    drift_pct=drift_pct(cur, tgt),
                    action=action,
                    group=self._group_for(symbol, target, infer_group),
                    price=price,
                    shares=suggest_shares(delta, price),
                )
            )
        return actions

    def plan(
        self,
        positions: list[Position],
        targets: Mapping[str, TargetAllocation],
        new_cash: float = 0.0,
        prices: Mapping[str, float] | None = None,
        infer_group: Callable[[str], str | None] | None = None,
    ) -> RebalancePlan:
        actions = self.compute_actions(
            positions, targets, new_cash, prices=prices, infer_group=infer_group
        )
        total_target = sum(t.weight for t in targets.values())
        if actions and abs(total_target - 1.0) > 1e-6:
            logger.debug("Target weights sum to %.2f%%, not 100%%", total_target * 100)

        return RebalancePlan(
            actions=actions,
            groups=group_allocations(actions),
            cash_allocation=distribute_cash(actions, new_cash),
            total_target_weight=total_target,
            new_cash=new_cash,
        )

    def flagged(
        self,
        actions: list[AllocationAction],
        threshold: float | None = None,
        mode: str = "both",
    ) -> list[AllocationAction]:
        if threshold is None:
            threshold = self.config.drift_threshold_pct
        return flag_drift(actions, threshold, mode)

    @staticmethod
    def _aggregate(positions: list[Position]) -> dict[str, float]:
        values: dict[str, float] = {}
        for p in positions:
            if not p.symbol:
                continue
            values[p.symbol] = values.get(p.symbol, 0.0) + p.value
        return values

    def _group_for(
        self,
        symbol: str,
        target: TargetAllocation | None,
        infer_group: Callable[[str], str | None] | None,
    ) -> str:
        if target is not None and target.group:
            return target.group
        if infer_group is not None:
            inferred = infer_group(symbol)
            if inferred:
                return inferred
        return self.config.default_group
