"""Shared fixtures: synthetic daily bakery sales with a weekly cycle."""

import numpy as np
import pandas as pd
import pytest

# Monday..Sunday multipliers: midweek troughs near 20, weekend peaks near 60-70 at level 37.
WEEKLY_PROFILE = np.array([0.75, 0.55, 0.60, 0.65, 0.95, 1.65, 1.85])


def simulate_bakery_sales(
    n_days: int = 764,
    level: float = 37.0,
    phi: float = 0.7,
    sigma: float = 0.12,
    seed: int = 2024,
    start: str = "2021-01-04",
) -> pd.Series:
    """Log-scale weekly pattern plus AR(1) noise, rounded to whole loaves."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start, periods=n_days, freq="D")

    shocks = rng.normal(0.0, sigma, n_days)
    ar = np.zeros(n_days)
    ar[0] = shocks[0] / np.sqrt(1.0 - phi**2)
    for t in range(1, n_days):
        ar[t] = phi * ar[t - 1] + shocks[t]

    # Slowly evolving weekday pattern and level keep the MA terms off the unit circle.
    seasonal_drift = np.zeros(n_days)
    eta = rng.normal(0.0, 0.01, n_days)
    for t in range(7, n_days):
        seasonal_drift[t] = seasonal_drift[t - 7] + eta[t]
    level_drift = np.cumsum(rng.normal(0.0, 0.003, n_days))

    log_sales = (
        np.log(level)
        + np.log(WEEKLY_PROFILE[dates.dayofweek])
        + seasonal_drift
        + level_drift
        + ar
    )
    return pd.Series(np.round(np.exp(log_sales)), index=dates, name="sales")


def to_csv_frame(series: pd.Series) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": series.index.strftime("%m/%d/%Y"),
            "sales": series.to_numpy().astype(int),
            "weekday": series.index.day_name(),
        }
    )


@pytest.fixture
def make_sales():
    return simulate_bakery_sales


@pytest.fixture(scope="session")
def bakery_sales() -> pd.Series:
    return simulate_bakery_sales()


@pytest.fixture
def sales_csv(tmp_path, bakery_sales):
    path = tmp_path / "sales.csv"
    to_csv_frame(bakery_sales).to_csv(path, index=False)
    return path


@pytest.fixture
def write_csv(tmp_path):
    def _write(frame: pd.DataFrame, name: str = "sales.csv"):
        path = tmp_path / name
        frame.to_csv(path, index=False)
        return path

    return _write
