from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.stattools import acf

from .errors import InsufficientDataError


@dataclass(frozen=True)
class LjungBoxResult:
    statistic: float
    p_value: float
    max_lag: int
    degrees_of_freedom: int

    def is_white(self, significance: float = 0.05) -> bool:
        return self.p_value > significance


def ljung_box_test(residuals, max_lag: int = 14, dof_adjustment: int = 0) -> LjungBoxResult:
    """Portmanteau test ``Q = n(n+2) sum_k rho_k^2 / (n-k)`` against chi2(max_lag - dof_adjustment).

    ``dof_adjustment`` is the number of estimated AR and MA coefficients,
    seasonal ones included; differencing orders do not count. Missing
    residuals keep their position, so autocorrelations only pair days that
    are really ``k`` apart.
    """
    values = np.asarray(residuals, dtype=float)
    nobs = int(np.isfinite(values).sum())
    dof = max_lag - dof_adjustment
    if dof < 1:
        raise ValueError(
            f"Ljung-Box lag {max_lag} leaves no degrees of freedom after adjusting for {dof_adjustment}"
        )
    if nobs <= max_lag:
        raise InsufficientDataError(
            f"Ljung-Box test at lag {max_lag} needs more than {max_lag} residuals, got {nobs}"
        )

    if nobs == values.size:
        table = acorr_ljungbox(values, lags=[max_lag], model_df=dof_adjustment, return_df=True)
        row = table.iloc[-1]
        statistic, p_value = float(row["lb_stat"]), float(row["lb_pvalue"])
    else:
        rho = acf(values, nlags=max_lag, fft=False, missing="conservative")[1:]
        lags = np.arange(1, max_lag + 1)
        statistic = float(nobs * (nobs + 2) * np.sum(rho**2 / (nobs - lags)))
        p_value = float(stats.chi2.sf(statistic, dof))

    return LjungBoxResult(
        statistic=statistic,
        p_value=p_value,
        max_lag=max_lag,
        degrees_of_freedom=dof,
    )
