from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .backtest import candidates_frame, rolling_backtest
from .config import DEFAULT_CANDIDATES, PipelineConfig
from .data import load_sales_data, to_series
from .errors import ForecastError
from .models import ModelOrder
from .pipeline import PipelineResult, run_pipeline


def parse_candidates(raw: Optional[Sequence[str]], season_length: int) -> List[ModelOrder]:
    if not raw:
        return [
            ModelOrder(order.p, order.d, order.q, order.P, order.D, order.Q, season_length)
            for order in DEFAULT_CANDIDATES
        ]
    return [ModelOrder.parse(token, season_length) for token in raw]


def summarize_result(result: PipelineResult) -> str:
    config = result.config
    lines: list[str] = []
    lines.append(
        f"Training days: {result.train_days}, hold-out days: {result.holdout_days}"
    )
    if result.weekday_profile is not None:
        lines.append("\nSales by weekday:")
        lines.append(result.weekday_profile.to_string(float_format=lambda x: f"{x:.1f}"))

    lines.append("\nStationary series (log1p, seasonal and regular differences):")
    lines.append(result.correlation.summary())
    lines.append(
        f"ADF p={result.stationarity['adf_pvalue']:.4f}, KPSS p={result.stationarity['kpss_pvalue']:.4f}"
    )

    table = candidates_frame(result.candidates, config.significance)
    lines.append("\nCandidate models (lower AIC / RMSE is better):")
    lines.append(table.drop(columns=["error"]).to_string(index=False, float_format=lambda x: f"{x:.4f}"))
    lines.append(f"Seasonal naive hold-out RMSE: {result.baseline_rmse:.4f}")

    failed = table[table["error"].str.len().gt(0)]
    if not failed.empty:
        lines.append("\nWarnings:")
        for _, row in failed.iterrows():
            lines.append(f"- {row['order']} -> {row['error']}")

    lines.append(f"\nSelected model: SARIMA{result.selected.order}")
    return "\n".join(lines)


def build_argument_parser() -> argparse.ArgumentParser:
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(
        description="Daily bakery sales forecasting with hand-specified seasonal ARIMA candidates.",
    )
    parser.add_argument(
        "--sales-path",
        type=Path,
        required=True,
        help="Path to the daily sales CSV (columns: date as MM/DD/YYYY, sales, weekday).",
    )
    parser.add_argument(
        "--holdout-days",
        type=int,
        default=defaults.holdout_days,
        help=f"Trailing days withheld for evaluation (default: {defaults.holdout_days}).",
    )
    parser.add_argument(
        "--forecast-days",
        type=int,
        default=defaults.forecast_days,
        help=f"Days to forecast past the last observation (default: {defaults.forecast_days}).",
    )
    parser.add_argument(
        "--season-length",
        type=int,
        default=defaults.season_length,
        help=f"Seasonal period in days (default: {defaults.season_length}).",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        default=defaults.confidence_level,
        help=f"Forecast interval confidence level (default: {defaults.confidence_level}).",
    )
    parser.add_argument(
        "--ljung-box-lag",
        type=int,
        default=defaults.ljung_box_lag,
        help=f"Maximum lag of the residual whiteness test (default: {defaults.ljung_box_lag}).",
    )
    parser.add_argument(
        "--significance",
        type=float,
        default=defaults.significance,
        help=f"Whiteness test significance threshold (default: {defaults.significance}).",
    )
    parser.add_argument(
        "--correlation-max-lag",
        type=int,
        default=defaults.correlation_max_lag,
        help=f"Maximum ACF/PACF lag (default: {defaults.correlation_max_lag}).",
    )
    parser.add_argument(
        "--aic-tolerance",
        type=float,
        default=defaults.aic_tolerance,
        help=f"AIC gap treated as a close call (default: {defaults.aic_tolerance}).",
    )
    parser.add_argument(
        "--maxiter",
        type=int,
        default=defaults.maxiter,
        help=f"Optimiser iteration budget per fit (default: {defaults.maxiter}).",
    )
    parser.add_argument(
        "--candidate",
        action="append",
        metavar="p,d,q,P,D,Q",
        help="Candidate SARIMA order; repeat for several (default: 0,1,1,0,1,1 and 1,1,1,0,1,1).",
    )
    parser.add_argument(
        "--backtest-folds",
        type=int,
        default=0,
        help="Rolling-origin folds to run after selection (default: 0, disabled).",
    )
    parser.add_argument(
        "--metrics-output",
        type=Path,
        help="Optional path to write candidate metrics as CSV.",
    )
    parser.add_argument(
        "--forecast-output",
        type=Path,
        help="Optional path to write the forecast as CSV.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = PipelineConfig(
            holdout_days=args.holdout_days,
            forecast_days=args.forecast_days,
            season_length=args.season_length,
            confidence_level=args.confidence,
            ljung_box_lag=args.ljung_box_lag,
            significance=args.significance,
            correlation_max_lag=args.correlation_max_lag,
            aic_tolerance=args.aic_tolerance,
            maxiter=args.maxiter,
            candidates=tuple(parse_candidates(args.candidate, args.season_length)),
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        sales = load_sales_data(args.sales_path)
        result = run_pipeline(sales, config)
    except (ForecastError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(summarize_result(result))

    forecast_df = result.forecast.to_frame()
    print(f"\nForecast for the next {len(forecast_df)} days:")
    print(forecast_df.to_string(index=False, float_format=lambda x: f"{x:.2f}"))

    if args.backtest_folds > 0:
        backtest = rolling_backtest(to_series(sales), config, folds=args.backtest_folds)
        summary = backtest.dropna(subset=["rmse"]).groupby("order")[["rmse", "wmape"]].mean()
        print("\nRolling-origin backtest (mean across folds):")
        print(summary.to_string(float_format=lambda x: f"{x:.4f}"))

    if args.metrics_output:
        candidates_frame(result.candidates, config.significance).to_csv(args.metrics_output, index=False)
        print(f"\nSaved candidate metrics to {args.metrics_output}")

    if args.forecast_output:
        forecast_df.to_csv(args.forecast_output, index=False, date_format="%m/%d/%Y")
        print(f"Saved forecast to {args.forecast_output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
