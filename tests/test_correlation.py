import numpy as np
import pandas as pd
import pytest

from portfolio_analytics.analysis.correlation import (
    CorrelationAnalyzer,
    classify_correlation,
    pearson_correlation,
    prepare_symbols,
)
from portfolio_analytics.config import AnalyticsConfig
from portfolio_analytics.models.correlation import CorrelationBand
from portfolio_analytics.models.portfolio import Position


def make_prices(values, start: str = "2025-01-01") -> pd.Series:
    dates = pd.bdate_range(start=start, periods=len(values))
    return pd.Series(np.asarray(values, dtype=float), index=dates)


def make_random_walk(n: int = 120, seed: int = 42, vol: float = 0.02) -> pd.Series:
    rng = np.random.default_rng(seed)
    returns = rng.normal(0.0005, vol, n - 1)
    return make_prices(100.0 * np.cumprod(np.concatenate([[1.0], 1 + returns])))


class TestPearsonCorrelation:
    def test_identical(self):
        a = np.array([0.01, -0.02, 0.03, 0.0, 0.015])
        assert pearson_correlation(a, a) == pytest.approx(1.0)

    def test_negated(self):
        a = np.array([0.01, -0.02, 0.03, 0.0, 0.015])
        assert pearson_correlation(a, -a) == pytest.approx(-1.0)

    def test_zero_variance_is_zero(self):
        a = np.array([0.01, -0.02, 0.03, 0.0, 0.015])
        flat = np.zeros(5)
        assert pearson_correlation(a, flat) == 0.0
        assert pearson_correlation(flat, flat) == 0.0

    def test_clamped(self):
        a = np.array([1e-3, 2e-3, 3e-3, 4e-3, 5e-3]) * 1e6
        r = pearson_correlation(a, a * 3 + 7)
        assert -1.0 <= r <= 1.0


class TestCorrelate:
    def test_symmetric(self):
        analyzer = CorrelationAnalyzer()
        a = make_random_walk(seed=1)
        b = make_random_walk(seed=2)
        assert analyzer.correlate(a, b) == analyzer.correlate(b, a)

    def test_null_price_shrinks_overlap(self):
        analyzer = CorrelationAnalyzer()
        a = {f"d{i:02d}": 100.0 + i for i in range(10)}
        b = {f"d{i:02d}": (None if i == 3 else 50.0 + i * i) for i in range(10)}
        assert analyzer.correlate(a, b) is None
        matrix = analyzer.build_matrix(["A", "B"], {"A": a, "B": b})
        assert matrix.get("A", "B") is None

    def test_bounded(self):
        analyzer = CorrelationAnalyzer()
        for seed in range(10):
            r = analyzer.correlate(make_random_walk(seed=seed), make_random_walk(seed=seed + 100))
            assert r is not None
            assert -1.0 <= r <= 1.0

    def test_mirrored_returns_are_perfect_inverse(self):
        analyzer = CorrelationAnalyzer()
        a = make_random_walk(n=30, seed=7)
        v = a.to_numpy()
        ret = v[1:] / v[:-1] - 1
        b = make_prices(100.0 * np.cumprod(np.concatenate([[1.0], 1 - ret])))
        assert analyzer.correlate(a, b) == pytest.approx(-1.0, abs=1e-9)

    def test_opposite_linear_trends_have_positively_correlated_returns(self):
        # +1/day and -1/day prices both produce daily returns that fall
        # a little every day, so the return series move together
        analyzer = CorrelationAnalyzer()
        a = make_prices([100 + i for i in range(30)])
        b = make_prices([100 - i for i in range(30)])
        assert analyzer.correlate(a, b) > 0.9

    def test_flat_series_against_trend_is_exactly_zero(self):
        analyzer = CorrelationAnalyzer()
        a = make_prices([100 + i for i in range(30)])
        c = make_prices([100.0] * 30)
        assert analyzer.correlate(a, c) == 0.0

    def test_two_flat_series_is_zero(self):
        analyzer = CorrelationAnalyzer()
        flat = make_prices([100.0] * 20)
        assert analyzer.correlate(flat, flat.copy()) == 0.0

    def test_insufficient_history_is_none(self):
        analyzer = CorrelationAnalyzer()
        a = make_prices([100 + i for i in range(8)])
        assert analyzer.correlate(a, a) is None

    def test_no_overlap_is_none(self):
        analyzer = CorrelationAnalyzer()
        a = make_prices([100 + i for i in range(20)], start="2024-01-01")
        b = make_prices([100 + i for i in range(20)], start="2025-01-01")
        assert analyzer.correlate(a, b) is None

    def test_config_thresholds(self):
        analyzer = CorrelationAnalyzer(AnalyticsConfig(min_aligned_points=4, min_return_pairs=3))
        a = make_prices([100, 101, 99, 102, 103])
        assert analyzer.correlate(a, a) == pytest.approx(1.0)


class TestBuildMatrix:
    def test_diagonal_is_one(self):
        analyzer = CorrelationAnalyzer()
        history = {"AAA": make_random_walk(seed=1), "BBB": make_random_walk(seed=2)}
        result = analyzer.build_matrix(["AAA", "BBB", "CCC"], history)
        for i in range(3):
            assert result.matrix[i][i] == 1.0

    def test_missing_history_gives_none(self):
        analyzer = CorrelationAnalyzer()
        history = {"AAA": make_random_walk(seed=1), "BBB": make_random_walk(seed=2)}
        result = analyzer.build_matrix(["AAA", "BBB", "CCC"], history)
        assert result.get("AAA", "CCC") is None
        assert result.get("CCC", "BBB") is None
        assert result.get("AAA", "BBB") is not None

    def test_symmetric(self):
        analyzer = CorrelationAnalyzer()
        symbols = ["AAA", "BBB", "CCC", "DDD"]
        history = {s: make_random_walk(seed=i) for i, s in enumerate(symbols)}
        m = analyzer.build_matrix(symbols, history).matrix
        for i in range(4):
            for j in range(4):
                assert m[i][j] == m[j][i]

    def test_provider_callable(self):
        analyzer = CorrelationAnalyzer()
        store = {"AAA": make_random_walk(seed=1), "BBB": make_random_walk(seed=1)}
        calls: list[str] = []

        def provider(symbol: str):
            calls.append(symbol)
            return store.get(symbol)

        result = analyzer.build_matrix(["AAA", "BBB"], provider)
        assert result.get("AAA", "BBB") == pytest.approx(1.0)
        assert calls == ["AAA", "BBB"]

    def test_average_correlation(self):
        analyzer = CorrelationAnalyzer()
        symbols = ["AAA", "BBB", "CCC"]
        history = {s: make_random_walk(seed=i) for i, s in enumerate(symbols)}
        result = analyzer.build_matrix(symbols, history)
        m = result.matrix
        expected = (m[0][1] + m[0][2] + m[1][2]) / 3
        assert result.average_correlation == pytest.approx(expected)

    def test_average_none_without_pairs(self):
        analyzer = CorrelationAnalyzer()
        result = analyzer.build_matrix(["AAA"], {"AAA": make_random_walk()})
        assert result.matrix == [[1.0]]
        assert result.average_correlation is None

    def test_from_positions_caps_symbols(self):
        analyzer = CorrelationAnalyzer(AnalyticsConfig(max_symbols=2))
        positions = [
            Position(symbol=s, value=100.0) for s in ["CCC", "AAA", "BBB", "AAA"]
        ]
        history = {s: make_random_walk(seed=i) for i, s in enumerate(["AAA", "BBB", "CCC"])}
        result = analyzer.build_for_positions(positions, history)
        assert result.symbols == ["AAA", "BBB"]
        assert len(result.matrix) == 2


class TestClassify:
    def test_bands(self):
        assert classify_correlation(0.85) == CorrelationBand.HIGH
        assert classify_correlation(0.7) == CorrelationBand.HIGH
        assert classify_correlation(0.69) == CorrelationBand.MEDIUM
        assert classify_correlation(0.3) == CorrelationBand.MEDIUM
        assert classify_correlation(0.1) == CorrelationBand.LOW
        assert classify_correlation(0.0) == CorrelationBand.LOW
        assert classify_correlation(-0.2) == CorrelationBand.NEGATIVE

    def test_none(self):
        assert classify_correlation(None) is None


class TestPrepareSymbols:
    def test_dedup_sort_cap(self):
        symbols = ["MSFT", "AAPL", "MSFT", "", "NVDA"]
        assert prepare_symbols(symbols) == ["AAPL", "MSFT", "NVDA"]
        assert prepare_symbols(symbols, cap=2) == ["AAPL", "MSFT"]

    def test_default_cap(self):
        symbols = [f"S{i:02d}" for i in range(40)]
        assert len(prepare_symbols(symbols)) == 30
