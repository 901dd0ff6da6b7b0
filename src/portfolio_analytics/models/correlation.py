from enum import StrEnum

from pydantic import BaseModel


class CorrelationBand(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NEGATIVE = "negative"


class CorrelationMatrix(BaseModel):
    symbols: list[str] = []
    matrix: list[list[float | None]] = []
    average_correlation: float | None = None

    def get(self, a: str, b: str) -> float | None:
        return self.matrix[self.symbols.index(a)][self.symbols.index(b)]
