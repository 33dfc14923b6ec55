"""
Autocorrelation diagnostics for shortlisting SARIMA orders.

The report lists the lags whose sample ACF or PACF falls outside the
``z / sqrt(n)`` band. It never picks an order; candidates are supplied by the
caller after reviewing it.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from statistics import NormalDist
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import acf, adfuller, kpss, pacf

from .errors import InsufficientDataError


@dataclass(frozen=True)
class CorrelationReport:
    table: pd.DataFrame  # indexed by lag 1..max_lag, columns acf / pacf
    band: float
    nobs: int
    season_length: int

    @property
    def significant_acf_lags(self) -> Tuple[int, ...]:
        return tuple(int(lag) for lag in self.table.index[self.table["acf"].abs() > self.band])

    @property
    def significant_pacf_lags(self) -> Tuple[int, ...]:
        return tuple(int(lag) for lag in self.table.index[self.table["pacf"].abs() > self.band])

    @property
    def seasonal_lags(self) -> Tuple[int, ...]:
        return tuple(int(lag) for lag in self.table.index if lag % self.season_length == 0)

    def summary(self) -> str:
        return "\n".join(
            [
                f"Significance band: +/-{self.band:.3f} (n={self.nobs})",
                f"Significant ACF lags: {list(self.significant_acf_lags)}",
                f"Significant PACF lags: {list(self.significant_pacf_lags)}",
            ]
        )


def longest_complete_run(values) -> np.ndarray:
    """The longest stretch of consecutive observed values."""
    values = np.asarray(values, dtype=float)
    observed = np.concatenate(([False], np.isfinite(values), [False]))
    edges = np.flatnonzero(np.diff(observed.astype(int)))
    if edges.size == 0:
        return values[:0]
    starts, stops = edges[::2], edges[1::2]
    longest = int(np.argmax(stops - starts))
    return values[starts[longest] : stops[longest]]


def correlation_report(
    stationary,
    max_lag: int = 28,
    confidence_level: float = 0.95,
    season_length: int = 7,
) -> CorrelationReport:
    values = np.asarray(stationary, dtype=float)
    nobs = int(np.isfinite(values).sum())
    # Missing days keep their place so every lag pairs the right days; PACF
    # has no missing-value mode and uses the longest gap-free stretch.
    run = longest_complete_run(values)
    # pacf's Yule-Walker estimate requires nlags < nobs / 2
    if run.size < 2 * (max_lag + 1):
        raise InsufficientDataError(
            f"Correlation analysis to lag {max_lag} needs at least {2 * (max_lag + 1)} "
            f"consecutive observations, got {run.size}"
        )

    acf_values = acf(values, nlags=max_lag, fft=False, missing="conservative")
    pacf_values = pacf(run, nlags=max_lag, method="ywm")
    lags = pd.Index(range(1, max_lag + 1), name="lag")
    table = pd.DataFrame({"acf": acf_values[1:], "pacf": pacf_values[1:]}, index=lags)

    z = NormalDist().inv_cdf(0.5 + confidence_level / 2.0)
    return CorrelationReport(
        table=table,
        band=z / math.sqrt(nobs),
        nobs=nobs,
        season_length=season_length,
    )


def stationarity_tests(stationary, significance: float = 0.05) -> Dict[str, Optional[float]]:
    """ADF (null: unit root) and KPSS (null: level stationary) on the working series."""
    values = longest_complete_run(stationary)
    with warnings.catch_warnings():
        # KPSS warns when its p-value is clipped to the lookup table range
        warnings.simplefilter("ignore")
        adf_stat, adf_pvalue, *_ = adfuller(values, autolag="AIC")
        kpss_stat, kpss_pvalue, *_ = kpss(values, regression="c", nlags="auto")
    return {
        "adf_stat": float(adf_stat),
        "adf_pvalue": float(adf_pvalue),
        "adf_stationary": bool(adf_pvalue < significance),
        "kpss_stat": float(kpss_stat),
        "kpss_pvalue": float(kpss_pvalue),
        "kpss_stationary": bool(kpss_pvalue > significance),
    }
