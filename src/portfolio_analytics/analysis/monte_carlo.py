"""Monte Carlo projection of a portfolio's value under geometric Brownian motion.

Each simulation steps monthly over the horizon: the monthly contribution is
added, a lognormal price return is applied, dividends are paid net of tax and
reinvested when DRIP is on, and at the end capital-gains tax on the unrealized
gain is deducted and the result deflated to today's purchasing power.

Simulations are independent, so they are advanced together as numpy arrays,
one standard-normal draw per simulation per month.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from portfolio_analytics.analysis.percentiles import percentile_table, select_paths
from portfolio_analytics.config import AnalyticsConfig
from portfolio_analytics.errors import ConfigurationError
from portfolio_analytics.models.simulation import SimulationConfig, SimulationResult

logger = logging.getLogger(__name__)

_MONTHS = 12


def capital_gains_tax(
    value: np.ndarray | float,
    cost: np.ndarray | float,
    rate: float,
) -> np.ndarray:
    """Tax on the unrealized gain only; a position under water owes nothing."""
    gain = np.maximum(0.0, np.asarray(value, dtype=float) - np.asarray(cost, dtype=float))
    return gain * rate


def deflate(value: np.ndarray | float, inflation: float, years: int) -> np.ndarray:
    return np.asarray(value, dtype=float) / (1 + inflation) ** years


class MonteCarloSimulator:
    def __init__(
        self,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        config: AnalyticsConfig | None = None,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.config = config or AnalyticsConfig()

    def simulate(self, sim: SimulationConfig) -> SimulationResult:
        self._validate(sim)

        low_confidence = sim.n_sims < self.config.low_confidence_sims
        if low_confidence:
            logger.warning(
                "Only %d simulations requested; percentiles are low-confidence",
                sim.n_sims,
            )

        terminal, paths = self.run_paths(sim)

        order = np.argsort(terminal, kind="stable")
        sorted_terminal = terminal[order]

        return SimulationResult(
            terminal_values=sorted_terminal.tolist(),
            percentiles=percentile_table(sorted_terminal, self.config.percentiles),
            paths=select_paths(terminal, paths, self.config.path_percentiles),
            n_sims=sim.n_sims,
            steps=sim.steps,
            low_confidence=low_confidence,
        )

    def run_paths(self, sim: SimulationConfig) -> tuple[np.ndarray, np.ndarray]:
        """Return (terminal real values, nominal value paths) in simulation order.

        Paths have ``steps + 1`` columns; column 0 is the initial value.
        """
        n, steps = sim.n_sims, sim.steps
        sigma = sim.annual_sigma
        mu_m = (sim.effective_mu - 0.5 * sigma**2) / _MONTHS
        sigma_m = sigma / math.sqrt(_MONTHS)
        div_m = sim.annual_div_yield / _MONTHS
        contribution = sim.monthly_contribution

        value = np.full(n, float(sim.initial_value))
        cost = value.copy()
        paths = np.empty((n, steps + 1))
        paths[:, 0] = value

        for t in range(1, steps + 1):
            value += contribution
            cost += contribution

            z = self.rng.standard_normal(n)
            r = np.exp(mu_m + sigma_m * z) - 1.0
            value += value * r

            div_net = value * div_m * (1.0 - sim.div_tax_rate)
            if sim.drip:
                value += div_net
                cost += div_net
            # without DRIP the dividend cash leaves the portfolio untracked

            paths[:, t] = value

        net = value - capital_gains_tax(value, cost, sim.cg_tax_rate)
        return deflate(net, sim.inflation, sim.years), paths

    @staticmethod
    def _validate(sim: SimulationConfig) -> None:
        if not math.isfinite(sim.initial_value) or sim.initial_value <= 0:
            raise ConfigurationError(
                f"initial_value must be positive, got {sim.initial_value}"
            )
        if sim.years <= 0:
            raise ConfigurationError(f"years must be positive, got {sim.years}")
        if sim.n_sims <= 0:
            raise ConfigurationError(f"n_sims must be positive, got {sim.n_sims}")
        if sim.annual_sigma < 0:
            raise ConfigurationError(
                f"annual_sigma cannot be negative, got {sim.annual_sigma}"
            )
        if sim.inflation <= -1:
            raise ConfigurationError(f"inflation must exceed -100%, got {sim.inflation}")

        rates = {
            "annual_mu": sim.annual_mu,
            "annual_sigma": sim.annual_sigma,
            "annual_div_yield": sim.annual_div_yield,
            "monthly_contribution": sim.monthly_contribution,
            "inflation": sim.inflation,
            "wealth_tax_rate": sim.wealth_tax_rate,
        }
        for name, val in rates.items():
            if not math.isfinite(val):
                raise ConfigurationError(f"{name} must be finite, got {val}")
