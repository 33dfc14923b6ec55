from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from statistics import NormalDist
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .errors import InsufficientDataError, NonConvergenceError
from .transform import SeriesTransformer

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class ModelOrder:
    p: int
    d: int
    q: int
    P: int
    D: int
    Q: int
    s: int = 7

    def __post_init__(self) -> None:
        if min(self.p, self.d, self.q, self.P, self.D, self.Q) < 0 or self.s < 1:
            raise ValueError(f"Invalid SARIMA order {tuple(self)!r}")

    def __iter__(self):
        return iter((self.p, self.d, self.q, self.P, self.D, self.Q, self.s))

    def __str__(self) -> str:
        return f"({self.p},{self.d},{self.q})({self.P},{self.D},{self.Q})[{self.s}]"

    @classmethod
    def parse(cls, text: str, season_length: int = 7) -> "ModelOrder":
        """Build an order from ``"p,d,q,P,D,Q"`` with an optional trailing period."""
        tokens = [token.strip() for token in text.split(",") if token.strip()]
        if len(tokens) not in (6, 7):
            raise ValueError(f"Expected p,d,q,P,D,Q[,s], got {text!r}")
        values = [int(token) for token in tokens]
        if len(values) == 6:
            values.append(season_length)
        return cls(*values)

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    @property
    def seasonal_order(self) -> Tuple[int, int, int, int]:
        return (self.P, self.D, self.Q, self.s)

    @property
    def is_seasonal(self) -> bool:
        return bool(self.P or self.D or self.Q)

    @property
    def burn_in(self) -> int:
        return self.d + self.D * self.s

    @property
    def arma_terms(self) -> int:
        return self.p + self.q + self.P + self.Q

    @property
    def min_observations(self) -> int:
        return self.burn_in + self.p + self.q + (self.P + self.Q) * self.s + 1


@dataclass(frozen=True, eq=False)
class FittedModel:
    order: ModelOrder
    params: Dict[str, float]
    log_likelihood: float
    aic: float
    n_params: int
    nobs: int
    residuals: np.ndarray
    end: pd.Timestamp
    results: Any  # statsmodels SARIMAXResults; used for projection


@dataclass(frozen=True)
class ForecastPoint:
    date: pd.Timestamp
    mean: float
    lower: float
    upper: float


@dataclass(frozen=True)
class Forecast:
    points: Tuple[ForecastPoint, ...]
    confidence_level: float = 0.95

    def __len__(self) -> int:
        return len(self.points)

    @property
    def mean(self) -> np.ndarray:
        return np.array([point.mean for point in self.points], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        pct = f"{self.confidence_level * 100:g}"
        return pd.DataFrame.from_records(
            [
                {
                    "date": point.date,
                    "mean": point.mean,
                    f"lower{pct}": point.lower,
                    f"upper{pct}": point.upper,
                }
                for point in self.points
            ],
            columns=["date", "mean", f"lower{pct}", f"upper{pct}"],
        )


def fit_sarima(log_series: pd.Series, order: ModelOrder, maxiter: int = 200) -> FittedModel:
    # d and D do the differencing, so log_series arrives undifferenced.
    available = int(log_series.notna().sum())
    if available < order.min_observations:
        raise InsufficientDataError(
            f"Order {order} needs at least {order.min_observations} observations, got {available}"
        )

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            model = SARIMAX(
                log_series,
                order=order.order,
                seasonal_order=order.seasonal_order if order.is_seasonal else (0, 0, 0, 0),
                trend=None,
            )
            fitted = model.fit(disp=False, maxiter=maxiter)
        except (ValueError, np.linalg.LinAlgError) as exc:
            raise NonConvergenceError(f"Order {order} failed to fit: {exc}") from exc

    for warning in caught:
        LOGGER.debug("Order %s: %s", order, warning.message)

    if not bool(fitted.mle_retvals.get("converged", False)):
        raise NonConvergenceError(
            f"Order {order} did not converge within {maxiter} iterations"
        )
    if not np.isfinite(fitted.llf):
        raise NonConvergenceError(f"Order {order} produced a non-finite log-likelihood")

    burn = max(order.burn_in, int(getattr(fitted, "loglikelihood_burn", 0)))
    residuals = np.asarray(fitted.resid, dtype=float).copy()
    residuals[log_series.isna().to_numpy()] = np.nan
    residuals = residuals[burn:]

    n_params = len(fitted.params)
    LOGGER.info("Fitted %s: logLik=%.2f AIC=%.2f", order, fitted.llf, fitted.aic)
    return FittedModel(
        order=order,
        params={str(name): float(value) for name, value in fitted.params.items()},
        log_likelihood=float(fitted.llf),
        aic=float(-2.0 * fitted.llf + 2.0 * n_params),
        n_params=n_params,
        nobs=int(fitted.nobs),
        residuals=residuals,
        end=log_series.index[-1],
        results=fitted,
    )


def project(
    fitted: FittedModel,
    steps: int,
    transformer: SeriesTransformer,
    confidence_level: float = 0.95,
) -> Forecast:
    """Forecast ``steps`` days past the fit window on the original scale.

    Bounds are symmetric on the log scale and pass through ``expm1``
    separately, so they are asymmetric around the mean on the original scale.
    """
    prediction = fitted.results.get_forecast(steps=steps)
    mean = np.asarray(prediction.predicted_mean, dtype=float)
    se = np.asarray(prediction.se_mean, dtype=float)
    z = NormalDist().inv_cdf(0.5 + confidence_level / 2.0)

    point = transformer.restore(mean)
    lower = transformer.restore(mean - z * se)
    upper = transformer.restore(mean + z * se)

    dates = pd.date_range(fitted.end + pd.Timedelta(days=1), periods=steps, freq="D")
    points = tuple(
        ForecastPoint(date=day, mean=float(m), lower=float(lo), upper=float(hi))
        for day, m, lo, hi in zip(dates, point, lower, upper)
    )
    return Forecast(points=points, confidence_level=confidence_level)
