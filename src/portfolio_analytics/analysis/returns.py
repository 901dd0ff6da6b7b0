from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import numpy as np
import pandas as pd

from portfolio_analytics.errors import InsufficientDataError

PriceSeries = pd.Series | Mapping[Any, Any] | Iterable[tuple[Any, Any]]


def as_series(prices: PriceSeries) -> pd.Series:
    """Date-indexed series of raw price values, nothing coerced yet."""
    if isinstance(prices, pd.Series):
        return prices
    if isinstance(prices, Mapping):
        return pd.Series(list(prices.values()), index=list(prices.keys()), dtype=object)
    pairs = list(prices)
    return pd.Series(
        [p for _, p in pairs],
        index=[d for d, _ in pairs],
        dtype=object,
    )


def to_price_series(prices: PriceSeries) -> pd.Series:
    """Float prices; anything non-numeric becomes NaN."""
    return pd.to_numeric(as_series(prices), errors="coerce").astype(float)


def daily_returns(prices: PriceSeries) -> pd.Series:
    """Day-over-day fractional change; non-finite returns are dropped."""
    series = to_price_series(prices)
    returns = series.pct_change(fill_method=None).iloc[1:]
    return returns[np.isfinite(returns.to_numpy())]


def align_returns(
    prices_a: PriceSeries,
    prices_b: PriceSeries,
    *,
    min_points: int = 10,
    min_returns: int = 5,
) -> tuple[np.ndarray, np.ndarray]:
    """Paired daily returns over the dates both series share, in A's order.

    A date where B has no price at all (None) is not shared, so the return
    spans the gap. Values that are present but not numeric still count as
    shared and are dropped later as non-finite returns. Returns are computed
    over the synchronized prices, not the unaligned series, and an index
    where either side is non-finite is dropped from both vectors.
    """
    a = to_price_series(prices_a)
    raw_b = as_series(prices_b)
    raw_b = raw_b[~raw_b.index.duplicated(keep="last")]
    raw_b = raw_b[raw_b.notna()]
    b = pd.to_numeric(raw_b, errors="coerce").astype(float)

    a = a[a.index.isin(b.index)]
    if len(a) < min_points:
        raise InsufficientDataError(
            f"only {len(a)} aligned prices (need {min_points})"
        )

    pa = a.to_numpy()
    pb = b.reindex(a.index).to_numpy()

    with np.errstate(divide="ignore", invalid="ignore"):
        ra = (pa[1:] - pa[:-1]) / pa[:-1]
        rb = (pb[1:] - pb[:-1]) / pb[:-1]

    valid = np.isfinite(ra) & np.isfinite(rb)
    ra, rb = ra[valid], rb[valid]
    if len(ra) < min_returns:
        raise InsufficientDataError(
            f"only {len(ra)} valid return pairs (need {min_returns})"
        )
    return ra, rb
