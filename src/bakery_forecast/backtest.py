from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import PipelineConfig
from .data import SeriesWindow
from .diagnostics import LjungBoxResult, ljung_box_test
from .errors import (
    ForecastError,
    InsufficientDataError,
    ModelSelectionError,
    NonConvergenceError,
)
from .metrics import mase, rmse, wmape
from .models import FittedModel, Forecast, ModelOrder, fit_sarima, project
from .transform import SeriesTransformer, TransformSpec

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    forecast: Forecast
    rmse: float
    wmape: float
    mase: float


@dataclass(frozen=True, eq=False)
class CandidateResult:
    order: ModelOrder
    fitted: Optional[FittedModel] = None
    ljung_box: Optional[LjungBoxResult] = None
    evaluation: Optional[EvaluationResult] = None
    error: str = ""

    @property
    def converged(self) -> bool:
        return self.fitted is not None

    @property
    def aic(self) -> float:
        return self.fitted.aic if self.fitted is not None else np.nan

    @property
    def rmse(self) -> float:
        return self.evaluation.rmse if self.evaluation is not None else np.nan

    def passes_whiteness(self, significance: float) -> bool:
        return self.ljung_box is not None and self.ljung_box.is_white(significance)


def evaluate(
    fitted: FittedModel,
    holdout: SeriesWindow,
    train: SeriesWindow,
    config: PipelineConfig,
    transformer: Optional[SeriesTransformer] = None,
) -> EvaluationResult:
    transformer = transformer or SeriesTransformer(TransformSpec.seasonal_log(config.season_length))
    forecast = project(fitted, len(holdout), transformer, config.confidence_level)
    actual = holdout.series.to_numpy(dtype=float)
    predicted = forecast.mean
    return EvaluationResult(
        forecast=forecast,
        rmse=rmse(actual, predicted),
        wmape=wmape(actual, predicted),
        mase=mase(actual, predicted, train.series.to_numpy(dtype=float), config.season_length),
    )


def evaluate_candidates(
    train: SeriesWindow,
    holdout: SeriesWindow,
    config: PipelineConfig,
    orders: Optional[Iterable[ModelOrder]] = None,
    transformer: Optional[SeriesTransformer] = None,
) -> List[CandidateResult]:
    transformer = transformer or SeriesTransformer(TransformSpec.seasonal_log(config.season_length))
    log_train = pd.Series(
        transformer.stabilize(train.series), index=train.series.index, name="log_sales"
    )
    results: List[CandidateResult] = []

    for order in sorted(set(orders if orders is not None else config.candidates)):
        try:
            fitted = fit_sarima(log_train, order, maxiter=config.maxiter)
        except (NonConvergenceError, InsufficientDataError) as exc:
            LOGGER.warning("Dropping candidate %s: %s", order, exc)
            results.append(CandidateResult(order=order, error=str(exc)))
            continue

        try:
            whiteness = ljung_box_test(fitted.residuals, config.ljung_box_lag, order.arma_terms)
        except (ValueError, InsufficientDataError) as exc:
            LOGGER.warning("No residual diagnostics for %s: %s", order, exc)
            whiteness = None
        evaluation = evaluate(fitted, holdout, train, config, transformer)
        LOGGER.info(
            "Candidate %s: AIC=%.2f Ljung-Box p=%s hold-out RMSE=%.3f",
            order,
            fitted.aic,
            f"{whiteness.p_value:.4f}" if whiteness else "n/a",
            evaluation.rmse,
        )
        results.append(
            CandidateResult(order=order, fitted=fitted, ljung_box=whiteness, evaluation=evaluation)
        )

    if not any(result.converged for result in results):
        raise NonConvergenceError(
            "No candidate order converged: "
            + "; ".join(f"{result.order}: {result.error}" for result in results)
        )
    return results


def select_best_candidate(
    results: Sequence[CandidateResult],
    significance: float = 0.05,
    aic_tolerance: float = 2.0,
) -> CandidateResult:
    # Whiteness failures are out. An AIC within aic_tolerance of the best is a
    # close call, settled by hold-out RMSE and then the order itself.
    converged = [result for result in results if result.converged]
    adequate = [result for result in converged if result.passes_whiteness(significance)]
    for result in converged:
        if not result.passes_whiteness(significance):
            LOGGER.warning("Disqualifying %s: residuals fail the whiteness test", result.order)
    if not adequate:
        raise ModelSelectionError(
            f"All {len(converged)} converged candidates fail the Ljung-Box test at {significance}"
        )

    best_aic = min(result.aic for result in adequate)
    close = [result for result in adequate if result.aic - best_aic <= aic_tolerance]

    def rank(result: CandidateResult):
        score = result.rmse if np.isfinite(result.rmse) else np.inf
        return (score, result.aic, tuple(result.order))

    chosen = min(close, key=rank)
    LOGGER.info(
        "Selected %s (AIC=%.2f, RMSE=%.3f) from %d adequate candidates",
        chosen.order,
        chosen.aic,
        chosen.rmse,
        len(adequate),
    )
    return chosen


def seasonal_naive_baseline(
    train: SeriesWindow, steps: int, transformer: Optional[SeriesTransformer] = None
) -> np.ndarray:
    transformer = transformer or SeriesTransformer(TransformSpec.seasonal_log(train.season_length))
    return transformer.extend(train.series.to_numpy(dtype=float), np.zeros(steps))


def candidates_frame(results: Sequence[CandidateResult], significance: float = 0.05) -> pd.DataFrame:
    records = []
    for result in results:
        records.append(
            {
                "order": str(result.order),
                "converged": result.converged,
                "log_likelihood": result.fitted.log_likelihood if result.fitted else np.nan,
                "aic": result.aic,
                "ljung_box_stat": result.ljung_box.statistic if result.ljung_box else np.nan,
                "ljung_box_pvalue": result.ljung_box.p_value if result.ljung_box else np.nan,
                "white_residuals": result.passes_whiteness(significance),
                "rmse": result.rmse,
                "wmape": result.evaluation.wmape if result.evaluation else np.nan,
                "mase": result.evaluation.mase if result.evaluation else np.nan,
                "error": result.error,
            }
        )
    return pd.DataFrame.from_records(records)


def rolling_backtest(
    series: pd.Series,
    config: PipelineConfig,
    folds: int = 3,
    orders: Optional[Iterable[ModelOrder]] = None,
) -> pd.DataFrame:
    """Refit each order at ``folds`` cut-offs spaced one forecast horizon apart.

    Each fold trains on everything before its cut-off and scores the next
    ``forecast_days`` days. Fold failures are recorded in the ``error`` column.
    """
    transformer = SeriesTransformer(TransformSpec.seasonal_log(config.season_length))
    horizon = config.forecast_days
    records: List[dict] = []
    orders = sorted(set(orders if orders is not None else config.candidates))

    for fold in range(folds, 0, -1):
        cutoff = len(series) - fold * horizon
        if cutoff <= 0:
            continue
        train = SeriesWindow(series.iloc[:cutoff], config.season_length)
        test = SeriesWindow(series.iloc[cutoff : cutoff + horizon], config.season_length)
        log_train = pd.Series(transformer.stabilize(train.series), index=train.series.index)

        for order in orders:
            try:
                fitted = fit_sarima(log_train, order, maxiter=config.maxiter)
                result = evaluate(fitted, test, train, config, transformer)
                records.append(
                    {
                        "order": str(order),
                        "cutoff": train.end,
                        "rmse": result.rmse,
                        "wmape": result.wmape,
                        "error": "",
                    }
                )
            except ForecastError as exc:
                records.append(
                    {
                        "order": str(order),
                        "cutoff": train.end,
                        "rmse": np.nan,
                        "wmape": np.nan,
                        "error": str(exc),
                    }
                )

    return pd.DataFrame.from_records(records, columns=["order", "cutoff", "rmse", "wmape", "error"])
