from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from .backtest import (
    CandidateResult,
    evaluate_candidates,
    seasonal_naive_baseline,
    select_best_candidate,
)
from .config import PipelineConfig
from .correlation import CorrelationReport, correlation_report, stationarity_tests
from .data import series_to_daily, split_holdout, to_series, weekday_profile
from .errors import InsufficientDataError
from .metrics import rmse
from .models import Forecast, ModelOrder, fit_sarima, project
from .transform import SeriesTransformer, TransformSpec

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PipelineResult:
    config: PipelineConfig
    train_days: int
    holdout_days: int
    weekday_profile: Optional[pd.DataFrame]
    correlation: CorrelationReport
    stationarity: Dict[str, Optional[float]]
    candidates: List[CandidateResult]
    baseline_rmse: float
    selected: CandidateResult
    forecast: Forecast


def forecast(
    order: ModelOrder,
    full_series: pd.Series,
    horizon: int,
    config: Optional[PipelineConfig] = None,
) -> Forecast:
    """Refit ``order`` on all available history and project ``horizon`` days ahead."""
    config = config or PipelineConfig()
    transformer = SeriesTransformer(TransformSpec.seasonal_log(config.season_length))
    log_full = pd.Series(
        transformer.stabilize(full_series), index=full_series.index, name="log_sales"
    )
    fitted = fit_sarima(log_full, order, maxiter=config.maxiter)
    LOGGER.info("Refit %s on %d days through %s", order, len(full_series), fitted.end.date())
    return project(fitted, horizon, transformer, config.confidence_level)


def run_pipeline(
    sales: Union[pd.DataFrame, pd.Series],
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """``sales`` is the frame from ``load_sales_data`` or a daily series of counts."""
    config = config or PipelineConfig()
    if isinstance(sales, pd.DataFrame):
        profile = weekday_profile(sales)
        series = to_series(sales)
    else:
        profile = None
        series = series_to_daily(sales)

    transformer = SeriesTransformer(TransformSpec.seasonal_log(config.season_length))
    train, holdout = split_holdout(series, config.holdout_days, config.season_length)

    stationary = transformer.forward(train.series).values
    correlation = correlation_report(
        stationary,
        max_lag=config.correlation_max_lag,
        confidence_level=config.confidence_level,
        season_length=config.season_length,
    )
    stationarity = stationarity_tests(stationary, config.significance)
    LOGGER.info("Stationary series diagnostics:\n%s", correlation.summary())

    candidates = evaluate_candidates(train, holdout, config, transformer=transformer)

    try:
        baseline = seasonal_naive_baseline(train, len(holdout), transformer)
        baseline_rmse = rmse(holdout.series.to_numpy(dtype=float), baseline)
    except InsufficientDataError as exc:
        LOGGER.warning("Seasonal naive baseline unavailable: %s", exc)
        baseline_rmse = np.nan

    selected = select_best_candidate(candidates, config.significance, config.aic_tolerance)
    final = forecast(selected.order, series, config.forecast_days, config)

    return PipelineResult(
        config=config,
        train_days=len(train),
        holdout_days=len(holdout),
        weekday_profile=profile,
        correlation=correlation,
        stationarity=stationarity,
        candidates=candidates,
        baseline_rmse=baseline_rmse,
        selected=selected,
        forecast=final,
    )
