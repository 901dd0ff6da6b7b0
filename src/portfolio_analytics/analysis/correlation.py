from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping

import numpy as np
import pandas as pd

from portfolio_analytics.analysis.returns import (
    PriceSeries,
    align_returns,
    as_series,
)
from portfolio_analytics.config import (
    HIGH_CORRELATION,
    MEDIUM_CORRELATION,
    AnalyticsConfig,
)
from portfolio_analytics.errors import InsufficientDataError
from portfolio_analytics.models.correlation import CorrelationBand, CorrelationMatrix
from portfolio_analytics.models.portfolio import Position

logger = logging.getLogger(__name__)

PriceHistoryProvider = Callable[[str], PriceSeries | None]


def pearson_correlation(returns_a: np.ndarray, returns_b: np.ndarray) -> float:
    """Pearson r clamped to [-1, 1]; 0.0 when either side has no variance."""
    a = np.asarray(returns_a, dtype=float)
    b = np.asarray(returns_b, dtype=float)
    da = a - a.mean()
    db = b - b.mean()
    num = float(np.sum(da * db))
    ss_a = float(np.sum(da * da))
    ss_b = float(np.sum(db * db))
    if ss_a == 0 or ss_b == 0:
        return 0.0
    return min(1.0, max(-1.0, num / math.sqrt(ss_a * ss_b)))


def classify_correlation(r: float | None) -> CorrelationBand | None:
    if r is None:
        return None
    if r >= HIGH_CORRELATION:
        return CorrelationBand.HIGH
    if r >= MEDIUM_CORRELATION:
        return CorrelationBand.MEDIUM
    if r >= 0:
        return CorrelationBand.LOW
    return CorrelationBand.NEGATIVE


def prepare_symbols(symbols: Iterable[str], cap: int = 30) -> list[str]:
    """Unique non-empty symbols, sorted, at most `cap` of them."""
    return sorted({s for s in symbols if s})[:cap]


class CorrelationAnalyzer:
    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self.config = config or AnalyticsConfig()

    def correlate(self, prices_a: PriceSeries, prices_b: PriceSeries) -> float | None:
        try:
            ra, rb = align_returns(
                prices_a,
                prices_b,
                min_points=self.config.min_aligned_points,
                min_returns=self.config.min_return_pairs,
            )
        except InsufficientDataError as e:
            logger.debug("No correlation: %s", e)
            return None
        return pearson_correlation(ra, rb)

    def build_matrix(
        self,
        symbols: list[str],
        history: Mapping[str, PriceSeries] | PriceHistoryProvider,
    ) -> CorrelationMatrix:
        series = self._load_history(symbols, history)
        n = len(symbols)
        matrix: list[list[float | None]] = [[None] * n for _ in range(n)]

        for i in range(n):
            matrix[i][i] = 1.0
            for j in range(i + 1, n):
                sa, sb = series.get(symbols[i]), series.get(symbols[j])
                if sa is None or sb is None:
                    continue
                r = self.correlate(sa, sb)
                matrix[i][j] = r
                matrix[j][i] = r

        return CorrelationMatrix(
            symbols=list(symbols),
            matrix=matrix,
            average_correlation=self._average(matrix),
        )

    def build_for_positions(
        self,
        positions: list[Position],
        history: Mapping[str, PriceSeries] | PriceHistoryProvider,
    ) -> CorrelationMatrix:
        symbols = prepare_symbols(
            (p.symbol for p in positions), cap=self.config.max_symbols
        )
        return self.build_matrix(symbols, history)

    @staticmethod
    def _load_history(
        symbols: list[str],
        history: Mapping[str, PriceSeries] | PriceHistoryProvider,
    ) -> dict[str, pd.Series]:
        loaded: dict[str, pd.Series] = {}
        for sym in dict.fromkeys(symbols):
            if isinstance(history, Mapping):
                prices = history.get(sym)
            else:
                prices = history(sym)
            if prices is None:
                logger.debug("No price history for %s", sym)
                continue
            loaded[sym] = as_series(prices)
        return loaded

    @staticmethod
    def _average(matrix: list[list[float | None]]) -> float | None:
        vals = [
            v
            for i, row in enumerate(matrix)
            for j, v in enumerate(row)
            if i != j and v is not None
        ]
        return sum(vals) / len(vals) if vals else None
