"""Daily bakery sales forecasting with hand-specified seasonal ARIMA models."""

from .backtest import CandidateResult, evaluate, evaluate_candidates, rolling_backtest, select_best_candidate
from .config import PipelineConfig
from .correlation import correlation_report
from .data import SalesRecord, SeriesWindow, load_sales_data, series_to_daily, split_holdout, to_series
from .diagnostics import LjungBoxResult, ljung_box_test
from .errors import (
    DomainError,
    ForecastError,
    InsufficientDataError,
    ModelSelectionError,
    NonConvergenceError,
    ScheduleIntegrityError,
)
from .models import FittedModel, Forecast, ForecastPoint, ModelOrder, fit_sarima
from .pipeline import PipelineResult, forecast, run_pipeline
from .transform import DifferenceStep, SeriesTransformer, TransformSpec

__all__ = [
    "CandidateResult",
    "DifferenceStep",
    "DomainError",
    "FittedModel",
    "Forecast",
    "ForecastError",
    "ForecastPoint",
    "InsufficientDataError",
    "LjungBoxResult",
    "ModelOrder",
    "ModelSelectionError",
    "NonConvergenceError",
    "PipelineConfig",
    "PipelineResult",
    "SalesRecord",
    "ScheduleIntegrityError",
    "SeriesTransformer",
    "SeriesWindow",
    "TransformSpec",
    "correlation_report",
    "evaluate",
    "evaluate_candidates",
    "fit_sarima",
    "forecast",
    "ljung_box_test",
    "load_sales_data",
    "rolling_backtest",
    "run_pipeline",
    "select_best_candidate",
    "series_to_daily",
    "split_holdout",
    "to_series",
]

__version__ = "0.1.0"
