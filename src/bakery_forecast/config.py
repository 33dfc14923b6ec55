from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .models import ModelOrder

DEFAULT_CANDIDATES: Tuple[ModelOrder, ...] = (
    ModelOrder(0, 1, 1, 0, 1, 1, 7),
    ModelOrder(1, 1, 1, 0, 1, 1, 7),
)


@dataclass(frozen=True)
class PipelineConfig:
    """Parameters for the split, the model fits and the final forecast."""

    holdout_days: int = 84
    forecast_days: int = 28
    season_length: int = 7
    confidence_level: float = 0.95
    ljung_box_lag: int = 14
    significance: float = 0.05
    correlation_max_lag: int = 28
    aic_tolerance: float = 2.0
    maxiter: int = 200
    candidates: Tuple[ModelOrder, ...] = field(default=DEFAULT_CANDIDATES)

    def __post_init__(self) -> None:
        for name in ("holdout_days", "forecast_days", "season_length", "ljung_box_lag", "maxiter"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer, got {getattr(self, name)}")
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError(f"confidence_level must lie in (0, 1), got {self.confidence_level}")
        if not 0.0 < self.significance < 1.0:
            raise ValueError(f"significance must lie in (0, 1), got {self.significance}")
        if self.correlation_max_lag < 2 * self.season_length:
            raise ValueError(
                "correlation_max_lag must cover at least two seasonal cycles "
                f"({2 * self.season_length}), got {self.correlation_max_lag}"
            )
        if self.aic_tolerance < 0:
            raise ValueError(f"aic_tolerance must be non-negative, got {self.aic_tolerance}")
        if not self.candidates:
            raise ValueError("At least one candidate order is required.")
        for order in self.candidates:
            if order.is_seasonal and order.s != self.season_length:
                raise ValueError(
                    f"Candidate {order} uses period {order.s}; expected {self.season_length}."
                )
        # Sorted, de-duplicated candidates keep reporting order independent of input order.
        object.__setattr__(self, "candidates", tuple(sorted(set(self.candidates))))
