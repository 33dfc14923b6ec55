"""
Variance-stabilising transform and difference chain.

The forward chain is ``log1p`` followed by a seasonal difference at the period
and a regular difference at lag one. Each difference step records the leading
values it drops so that the chain can be re-integrated exactly. Missing days
stay missing in the stationary values; re-integration runs over a gap-filled
copy of the chain and blanks the missing days again afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import DomainError, InsufficientDataError


@dataclass(frozen=True)
class DifferenceStep:
    lag: int
    order: int = 1

    def __post_init__(self) -> None:
        if self.lag < 1 or self.order < 1:
            raise ValueError(f"Difference lag and order must be positive, got {self}")


@dataclass(frozen=True)
class TransformSpec:
    forward: Callable[[np.ndarray], np.ndarray] = np.log1p
    inverse: Callable[[np.ndarray], np.ndarray] = np.expm1
    differences: Tuple[DifferenceStep, ...] = field(
        default=(DifferenceStep(lag=7), DifferenceStep(lag=1))
    )

    @classmethod
    def seasonal_log(cls, season_length: int = 7) -> "TransformSpec":
        return cls(differences=(DifferenceStep(lag=season_length), DifferenceStep(lag=1)))

    @property
    def expanded_lags(self) -> List[int]:
        """Lags in application order, one entry per single difference."""
        return [step.lag for step in self.differences for _ in range(step.order)]

    @property
    def total_lag(self) -> int:
        return sum(self.expanded_lags)


@dataclass(frozen=True, eq=False)
class TransformedSeries:
    """Stationary values plus the boundary values dropped by each difference."""

    values: np.ndarray
    seeds: Tuple[np.ndarray, ...]
    missing: Optional[np.ndarray] = None
    # differences of the gap-filled chain; equal to ``values`` when nothing is missing
    filled: Optional[np.ndarray] = None


def _as_array(values: Sequence[float] | pd.Series | np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _fill_gaps(stabilized: np.ndarray) -> np.ndarray:
    if np.isfinite(stabilized).all():
        return stabilized
    if not np.isfinite(stabilized).any():
        raise InsufficientDataError("Series has no observed values")
    return pd.Series(stabilized).interpolate(limit_direction="both").to_numpy(dtype=float)


def _cumulate(diffs: np.ndarray, boundary: np.ndarray, lag: int) -> np.ndarray:
    """Undo one lag-``lag`` difference, continuing from ``boundary``."""
    level = np.empty(len(boundary) + len(diffs), dtype=float)
    level[: len(boundary)] = boundary
    for t, value in enumerate(diffs, start=len(boundary)):
        level[t] = value + level[t - lag]
    return level


class SeriesTransformer:
    def __init__(self, spec: TransformSpec | None = None) -> None:
        self.spec = spec or TransformSpec()

    def stabilize(self, values) -> np.ndarray:
        arr = _as_array(values)
        negative = np.flatnonzero(arr < 0)
        if negative.size:
            idx = int(negative[0])
            label = values.index[idx] if isinstance(values, pd.Series) else idx
            raise DomainError(f"Cannot log-transform negative value {arr[idx]:g} at {label}")
        return self.spec.forward(arr)

    def restore(self, values) -> np.ndarray:
        return self.spec.inverse(_as_array(values))

    def _levels(self, stabilized: np.ndarray) -> List[np.ndarray]:
        """Every intermediate level of the difference chain, input first."""
        levels = [stabilized]
        for lag in self.spec.expanded_lags:
            current = levels[-1]
            if len(current) <= lag:
                raise InsufficientDataError(
                    f"Cannot difference {len(current)} values at lag {lag}"
                )
            levels.append(current[lag:] - current[:-lag])
        return levels

    def difference(self, stabilized) -> np.ndarray:
        return self._levels(_as_array(stabilized))[-1]

    def forward(self, values) -> TransformedSeries:
        stabilized = self.stabilize(values)
        missing = np.isnan(stabilized)
        levels = self._levels(_fill_gaps(stabilized))
        seeds = tuple(level[:lag] for level, lag in zip(levels, self.spec.expanded_lags))
        if not missing.any():
            return TransformedSeries(values=levels[-1], seeds=seeds)
        return TransformedSeries(
            values=self.difference(stabilized),
            seeds=seeds,
            missing=missing,
            filled=levels[-1],
        )

    def inverse(self, transformed: TransformedSeries) -> np.ndarray:
        source = transformed.values if transformed.filled is None else transformed.filled
        level = _as_array(source)
        for seed, lag in zip(reversed(transformed.seeds), reversed(self.spec.expanded_lags)):
            level = _cumulate(level, seed, lag)
        if transformed.missing is not None:
            level[transformed.missing] = np.nan
        return self.restore(level)

    def extend(self, history, differenced_future) -> np.ndarray:
        """Re-integrate stationary-scale values onto the end of ``history``.

        Seeds come from the last observed values of each intermediate level of
        the history, so a zero path continues the latest seasonal cycle and
        its most recent week-on-week change.
        """
        levels = self._levels(self.stabilize(history))
        level = _as_array(differenced_future)
        for source, lag in zip(reversed(levels[:-1]), reversed(self.spec.expanded_lags)):
            tail = source[-lag:]
            if np.isnan(tail).any():
                raise InsufficientDataError(
                    f"History ends with missing values inside the last {lag} observations"
                )
            level = _cumulate(level, tail, lag)[lag:]
        return self.restore(level)
