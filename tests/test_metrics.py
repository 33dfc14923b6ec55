import numpy as np
import pytest

from bakery_forecast.metrics import mase, rmse, wmape


def test_rmse_matches_definition():
    actual = np.array([30.0, 20.0, 60.0])
    predicted = np.array([33.0, 16.0, 60.0])
    assert rmse(actual, predicted) == pytest.approx(np.sqrt((9 + 16 + 0) / 3))


def test_metrics_skip_missing_actuals():
    actual = np.array([30.0, np.nan, 60.0])
    predicted = np.array([33.0, 25.0, 57.0])
    assert rmse(actual, predicted) == pytest.approx(3.0)
    assert wmape(actual, predicted) == pytest.approx(6.0 / 90.0)


def test_rmse_of_nothing_is_nan():
    assert np.isnan(rmse([np.nan], [1.0]))


def test_shape_mismatch_is_an_error():
    with pytest.raises(ValueError):
        rmse([1.0, 2.0], [1.0])


def test_wmape_with_zero_denominator_is_nan():
    assert np.isnan(wmape([0.0, 0.0], [1.0, 2.0]))


def test_mase_scales_by_seasonal_naive_error():
    insample = np.tile([10.0, 20.0], 4) + np.repeat([0.0, 2.0, 4.0, 6.0], 2)
    # seasonal naive with period 2 is off by exactly 2 everywhere
    assert mase([10.0], [13.0], insample, season_length=2) == pytest.approx(1.5)
    assert np.isnan(mase([10.0], [13.0], insample[:2], season_length=2))
