from pydantic import BaseModel, Field

DEFAULT_PERCENTILES: list[int] = [5, 10, 25, 50, 75, 90, 95]
DEFAULT_PATH_PERCENTILES: list[int] = [10, 25, 50, 75, 90]

HIGH_CORRELATION = 0.7
MEDIUM_CORRELATION = 0.3


class AnalyticsConfig(BaseModel):
    # correlation
    min_aligned_points: int = Field(default=10, ge=2)
    min_return_pairs: int = Field(default=5, ge=2)
    max_symbols: int = Field(default=30, ge=1)

    # monte carlo
    percentiles: list[int] = Field(default_factory=lambda: DEFAULT_PERCENTILES.copy())
    path_percentiles: list[int] = Field(
        default_factory=lambda: DEFAULT_PATH_PERCENTILES.copy()
    )
    low_confidence_sims: int = 100

    # rebalancing
    drift_threshold_pct: float = 5.0
    default_group: str = "Other"
