from pydantic import BaseModel, ConfigDict, Field


class SimulationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial_value: float
    annual_mu: float = 0.09
    annual_sigma: float = 0.18
    annual_div_yield: float = 0.0
    monthly_contribution: float = 0.0
    years: int = 10
    n_sims: int = 500
    drip: bool = True
    inflation: float = 0.0
    div_tax_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    cg_tax_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    wealth_tax_rate: float = 0.0

    @property
    def steps(self) -> int:
        return self.years * 12

    @property
    def effective_mu(self) -> float:
        return self.annual_mu - self.wealth_tax_rate


class SimulationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    terminal_values: list[float]
    percentiles: dict[int, float]
    paths: dict[int, list[float]]
    n_sims: int
    steps: int
    low_confidence: bool = False

    @property
    def median(self) -> float:
        return self.percentiles[50]
