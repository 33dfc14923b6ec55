"""Loader and splitter behaviour."""

import logging

import numpy as np
import pandas as pd
import pytest

from bakery_forecast.data import (
    SalesRecord,
    load_sales_data,
    series_to_daily,
    split_holdout,
    to_records,
    to_series,
    weekday_profile,
)
from bakery_forecast.errors import DomainError, InsufficientDataError, ScheduleIntegrityError


def _frame(rows):
    return pd.DataFrame(rows, columns=["date", "sales", "weekday"])


def test_load_resorts_out_of_order_rows(write_csv):
    path = write_csv(
        _frame(
            [
                ("01/03/2023", 20, "Tuesday"),
                ("01/01/2023", 60, "Sunday"),
                ("01/02/2023", 31, "Monday"),
            ]
        )
    )
    df = load_sales_data(path)

    assert df["date"].is_monotonic_increasing
    assert df["date"].is_unique
    assert df["sales"].tolist() == [60, 31, 20]


def test_load_rejects_duplicate_dates(write_csv):
    path = write_csv(
        _frame(
            [
                ("01/01/2023", 60, "Sunday"),
                ("01/02/2023", 31, "Monday"),
                ("01/02/2023", 33, "Monday"),
            ]
        )
    )
    with pytest.raises(ScheduleIntegrityError, match="2023-01-02"):
        load_sales_data(path)


def test_load_rejects_unparseable_dates(write_csv):
    path = write_csv(_frame([("2023-01-01", 60, "Sunday"), ("01/02/2023", 31, "Monday")]))
    with pytest.raises(ScheduleIntegrityError, match="Unparseable"):
        load_sales_data(path)


def test_load_rejects_negative_counts(write_csv):
    path = write_csv(_frame([("01/01/2023", 60, "Sunday"), ("01/02/2023", -3, "Monday")]))
    with pytest.raises(DomainError, match="2023-01-02"):
        load_sales_data(path)


def test_load_rejects_fractional_counts(write_csv):
    path = write_csv(_frame([("01/01/2023", 60.5, "Sunday")]))
    with pytest.raises(ValueError, match="integer-valued"):
        load_sales_data(path)


def test_load_requires_columns(write_csv):
    path = write_csv(pd.DataFrame({"date": ["01/01/2023"], "sales": [60]}))
    with pytest.raises(ValueError, match="weekday"):
        load_sales_data(path)


def test_weekday_column_is_recomputed(write_csv, caplog):
    path = write_csv(_frame([("01/01/2023", 60, "Monday"), ("01/02/2023", 31, "Mon")]))
    with caplog.at_level(logging.WARNING, logger="bakery_forecast.data"):
        df = load_sales_data(path)

    assert df["weekday"].tolist() == ["Sunday", "Monday"]
    assert "disagree" in caplog.text


def test_gaps_stay_missing_and_zeros_stay_zero(write_csv):
    path = write_csv(
        _frame(
            [
                ("12/24/2022", 70, "Saturday"),
                ("12/25/2022", 0, "Sunday"),
                ("12/27/2022", 22, "Tuesday"),
            ]
        )
    )
    series = to_series(load_sales_data(path))

    assert len(series) == 4
    assert series.index.freqstr == "D"
    assert series.loc["2022-12-25"] == 0
    assert np.isnan(series.loc["2022-12-26"])


def test_to_records_skips_absent_days(write_csv):
    path = write_csv(_frame([("12/24/2022", 70, "Saturday"), ("12/26/2022", 25, "Monday")]))
    records = to_records(load_sales_data(path))

    assert records[0] == SalesRecord(date=pd.Timestamp("2022-12-24").date(), count=70, weekday="Saturday")
    assert len(records) == 2


def test_weekday_profile_is_in_calendar_order(sales_csv):
    profile = weekday_profile(load_sales_data(sales_csv))

    assert list(profile.index) == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    assert profile.loc["Sunday", "mean"] > profile.loc["Tuesday", "mean"]


def test_split_holdout_partitions_series(bakery_sales):
    train, holdout = split_holdout(bakery_sales, holdout_days=84)

    assert len(train) == len(bakery_sales) - 84
    assert len(holdout) == 84
    assert train.end + pd.Timedelta(days=1) == holdout.start
    assert train.series.index.intersection(holdout.series.index).empty
    pd.testing.assert_series_equal(pd.concat([train.series, holdout.series]), bakery_sales, check_freq=False)


def test_split_holdout_requires_more_than_horizon(bakery_sales):
    with pytest.raises(InsufficientDataError):
        split_holdout(bakery_sales.iloc[:84], holdout_days=84)


def test_series_input_is_sorted_onto_a_daily_calendar(bakery_sales):
    shuffled = bakery_sales.iloc[:30].sample(frac=1.0, random_state=3).drop(bakery_sales.index[10])
    series = series_to_daily(shuffled)

    assert series.index.is_monotonic_increasing
    assert series.index.freqstr == "D"
    assert len(series) == 30
    assert np.isnan(series.iloc[10])


def test_series_input_rejects_duplicate_dates(bakery_sales):
    doubled = pd.concat([bakery_sales, bakery_sales.iloc[[-1]]])
    with pytest.raises(ScheduleIntegrityError, match=bakery_sales.index[-1].strftime("%Y-%m-%d")):
        series_to_daily(doubled)
