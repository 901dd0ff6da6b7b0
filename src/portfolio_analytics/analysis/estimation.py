from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from enum import StrEnum
from typing import NamedTuple

from portfolio_analytics.models.portfolio import Position, Quote
from portfolio_analytics.models.simulation import SimulationConfig

logger = logging.getLogger(__name__)

DEFAULT_MU = 0.09
DEFAULT_SIGMA = 0.18
EMPTY_PORTFOLIO_SIGMA = 0.15
DEFAULT_DIV_YIELD_PCT = 1.5

MU_BOUNDS = (-0.3, 0.5)
SIGMA_BOUNDS = (0.05, 0.8)

# Swiss private investor assumptions
CH_DECLARED_DIV_TAX = 0.15
CH_WEALTH_TAX_RATE = 0.002


class TaxProfile(StrEnum):
    CH_PRIVATE = "ch_private"
    CH_DECLARED = "ch_declared"
    CUSTOM = "custom"


class TaxRates(NamedTuple):
    div_tax: float
    cg_tax: float
    wealth_tax: float


class PortfolioStats(NamedTuple):
    mu: float
    sigma: float


def _clamp(x: float, bounds: tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], x))


def estimate_portfolio_stats(
    positions: list[Position],
    quotes: Mapping[str, Quote],
) -> PortfolioStats:
    """Value-weighted annual return and volatility from quote snapshots.

    Return is annualised from the two-year reference price; volatility is a
    rough proxy scaled from the latest daily change.
    """
    total = sum(p.value for p in positions)
    if not positions or total <= 0:
        return PortfolioStats(DEFAULT_MU, EMPTY_PORTFOLIO_SIGMA)

    w_mu = w_sigma = w_total = 0.0
    for p in positions:
        q = quotes.get(p.symbol)
        if q is None or not p.value:
            continue
        w = p.value / total

        if q.ref_2y and q.ref_2y > 0 and q.price >= 0:
            annual_return = (q.price / q.ref_2y) ** 0.5 - 1
        else:
            annual_return = DEFAULT_MU

        change = q.change_pct if q.change_pct is not None else 1.0
        annual_sigma = abs(change) / 100 * math.sqrt(252) * 0.5 or DEFAULT_SIGMA

        w_mu += w * _clamp(annual_return, MU_BOUNDS)
        w_sigma += w * _clamp(annual_sigma, SIGMA_BOUNDS)
        w_total += w

    if w_total <= 0:
        return PortfolioStats(DEFAULT_MU, DEFAULT_SIGMA)
    return PortfolioStats(w_mu / w_total, w_sigma / w_total)


def estimate_dividend_yield(
    positions: list[Position],
    yields_pct: Mapping[str, float | None],
) -> float:
    total = sum(p.value for p in positions)
    if not positions or total <= 0:
        return DEFAULT_DIV_YIELD_PCT / 100

    w_div = w_total = 0.0
    for p in positions:
        if not p.value:
            continue
        w = p.value / total
        pct = yields_pct.get(p.symbol)
        w_div += w * ((pct if pct is not None else DEFAULT_DIV_YIELD_PCT) / 100)
        w_total += w
    return w_div / w_total if w_total > 0 else DEFAULT_DIV_YIELD_PCT / 100


def resolve_tax_profile(
    profile: TaxProfile | str,
    custom_rate: float = 0.0,
) -> TaxRates:
    profile = TaxProfile(profile)
    if profile == TaxProfile.CH_PRIVATE:
        # withholding tax on dividends is fully refundable; no capital gains tax
        return TaxRates(div_tax=0.0, cg_tax=0.0, wealth_tax=CH_WEALTH_TAX_RATE)
    if profile == TaxProfile.CH_DECLARED:
        return TaxRates(
            div_tax=CH_DECLARED_DIV_TAX, cg_tax=0.0, wealth_tax=CH_WEALTH_TAX_RATE
        )
    return TaxRates(div_tax=custom_rate, cg_tax=custom_rate, wealth_tax=0.0)


def build_simulation_config(
    positions: list[Position],
    quotes: Mapping[str, Quote],
    yields_pct: Mapping[str, float | None],
    *,
    years: int = 10,
    n_sims: int = 500,
    monthly_contribution: float = 500.0,
    inflation: float = 0.025,
    drip: bool = True,
    tax_profile: TaxProfile | str = TaxProfile.CH_PRIVATE,
    custom_tax_rate: float = 0.0,
) -> SimulationConfig:
    stats = estimate_portfolio_stats(positions, quotes)
    taxes = resolve_tax_profile(tax_profile, custom_tax_rate)
    logger.debug(
        "Estimated mu=%.4f sigma=%.4f, taxes %s", stats.mu, stats.sigma, taxes
    )
    return SimulationConfig(
        initial_value=sum(p.value for p in positions),
        annual_mu=stats.mu,
        annual_sigma=stats.sigma,
        annual_div_yield=estimate_dividend_yield(positions, yields_pct),
        monthly_contribution=monthly_contribution,
        years=years,
        n_sims=n_sims,
        drip=drip,
        inflation=inflation,
        div_tax_rate=taxes.div_tax,
        cg_tax_rate=taxes.cg_tax,
        wealth_tax_rate=taxes.wealth_tax,
    )
