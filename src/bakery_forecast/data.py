from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import DomainError, InsufficientDataError, ScheduleIntegrityError

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS: Sequence[str] = ("date", "sales", "weekday")
DATE_FORMAT = "%m/%d/%Y"
WEEKDAYS: Sequence[str] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class SalesRecord:
    date: date
    count: int
    weekday: str


@dataclass(frozen=True)
class SeriesWindow:
    series: pd.Series
    season_length: int = 7

    def __len__(self) -> int:
        return len(self.series)

    @property
    def start(self) -> pd.Timestamp:
        return self.series.index[0]

    @property
    def end(self) -> pd.Timestamp:
        return self.series.index[-1]


def load_sales_data(sales_path: Union[str, Path]) -> pd.DataFrame:
    """Read the daily sales CSV into a validated frame sorted by date.

    Rows given out of order are re-sorted. Duplicate or unparseable dates raise
    ``ScheduleIntegrityError``; negative counts raise ``DomainError``.
    """
    df = pd.read_csv(sales_path, dtype={"date": str, "weekday": str})
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Sales data missing required columns: {sorted(missing)}")

    frame = df[list(REQUIRED_COLUMNS)].copy()
    frame["date"] = pd.to_datetime(frame["date"].str.strip(), format=DATE_FORMAT, errors="coerce")
    unparsed = frame["date"].isna()
    if unparsed.any():
        rows = (frame.index[unparsed] + 2).tolist()
        raise ScheduleIntegrityError(f"Unparseable dates (expected {DATE_FORMAT}) on CSV rows: {rows[:10]}")

    frame["sales"] = _validate_counts(frame["sales"], frame["date"])

    _reject_duplicate_dates(frame["date"])

    frame = frame.sort_values("date").reset_index(drop=True)
    _check_weekdays(frame)
    frame["weekday"] = frame["date"].dt.day_name()

    LOGGER.info(
        "Loaded %d daily rows from %s (%s to %s)",
        len(frame),
        sales_path,
        frame["date"].iloc[0].date() if len(frame) else None,
        frame["date"].iloc[-1].date() if len(frame) else None,
    )
    return frame


def _validate_counts(sales: pd.Series, dates: pd.Series) -> pd.Series:
    numeric = pd.to_numeric(sales, errors="coerce")
    bad = numeric.isna() & sales.notna()
    if bad.any():
        raise ValueError(f"Non-numeric sales values: {sales[bad].astype(str).tolist()[:10]}")

    present = numeric.dropna()
    fractional = present[~np.isclose(present, np.round(present))]
    if not fractional.empty:
        raise ValueError(f"Sales counts must be integer-valued, got {fractional.tolist()[:10]}")

    negative = numeric < 0
    if negative.any():
        first = negative.idxmax()
        raise DomainError(
            f"Negative sales count {numeric[first]:g} on {dates[first].strftime('%Y-%m-%d')}"
        )
    return numeric


def _reject_duplicate_dates(dates) -> None:
    dates = pd.Series(pd.DatetimeIndex(dates))
    duplicated = dates.duplicated(keep=False)
    if duplicated.any():
        dupes = sorted({ts.strftime("%Y-%m-%d") for ts in dates[duplicated]})
        raise ScheduleIntegrityError(f"Duplicate dates in sales data: {dupes[:10]}")


def _check_weekdays(frame: pd.DataFrame) -> None:
    given = frame["weekday"].fillna("").str.strip().str.lower()
    expected = frame["date"].dt.day_name().str.lower()
    matches = given.eq(expected) | given.eq(expected.str[:3]) | given.eq("")
    if not matches.all():
        mismatched = frame.loc[~matches, "date"].dt.strftime("%Y-%m-%d").tolist()
        LOGGER.warning(
            "Weekday labels disagree with dates on %d rows (first: %s); using computed weekdays",
            len(mismatched),
            mismatched[:5],
        )


def ensure_daily_frequency(df: pd.DataFrame) -> pd.DataFrame:
    """Reindex to a gap-free daily calendar. Inserted days carry NaN sales."""
    prepared = df.set_index("date").asfreq("D")
    gaps = int(prepared["sales"].isna().sum())
    if gaps:
        LOGGER.info("Inserted %d missing days as absent observations", gaps)
    prepared = prepared.reset_index()
    prepared["weekday"] = prepared["date"].dt.day_name()
    return prepared


def to_series(df: pd.DataFrame) -> pd.Series:
    series = ensure_daily_frequency(df).set_index("date")["sales"].astype(float).asfreq("D")
    series.name = "sales"
    return series


def series_to_daily(sales: pd.Series) -> pd.Series:
    """Daily counts indexed by date, held to the same date rules as the CSV loader."""
    _reject_duplicate_dates(sales.index)
    series = sales.sort_index().astype(float).asfreq("D")
    series.name = "sales"
    return series


def to_records(df: pd.DataFrame) -> List[SalesRecord]:
    return [
        SalesRecord(date=row.date.date(), count=int(row.sales), weekday=row.weekday)
        for row in df.dropna(subset=["sales"]).itertuples(index=False)
    ]


def weekday_profile(df: pd.DataFrame) -> pd.DataFrame:
    observed = df.dropna(subset=["sales"])
    profile = (
        observed.groupby(observed["date"].dt.day_name())["sales"]
        .agg(["mean", "median", "min", "max", "count"])
    )
    return profile.reindex([day for day in WEEKDAYS if day in profile.index])


def split_holdout(
    series: pd.Series, holdout_days: int, season_length: int = 7
) -> Tuple[SeriesWindow, SeriesWindow]:
    if len(series) <= holdout_days:
        raise InsufficientDataError(
            f"Series of {len(series)} days cannot hold out {holdout_days} days"
        )
    cut = len(series) - holdout_days
    train = SeriesWindow(series.iloc[:cut].copy(), season_length)
    holdout = SeriesWindow(series.iloc[cut:].copy(), season_length)
    LOGGER.info(
        "Split %d training days (to %s) and %d hold-out days",
        len(train),
        train.end.date(),
        len(holdout),
    )
    return train, holdout
