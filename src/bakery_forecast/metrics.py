import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error


def _aligned(actual, predicted) -> tuple[np.ndarray, np.ndarray]:
    actual_arr = np.asarray(actual, dtype=float)
    predicted_arr = np.asarray(predicted, dtype=float)
    if actual_arr.shape != predicted_arr.shape:
        raise ValueError(f"Shape mismatch: actual {actual_arr.shape} vs predicted {predicted_arr.shape}")
    # Missing days in the hold-out are absent observations, not errors.
    mask = np.isfinite(actual_arr) & np.isfinite(predicted_arr)
    return actual_arr[mask], predicted_arr[mask]


def rmse(actual: pd.Series | np.ndarray, predicted: pd.Series | np.ndarray) -> float:
    actual_arr, predicted_arr = _aligned(actual, predicted)
    if actual_arr.size == 0:
        return np.nan
    return float(np.sqrt(mean_squared_error(actual_arr, predicted_arr)))


def wmape(actual: pd.Series | np.ndarray, predicted: pd.Series | np.ndarray) -> float:
    actual_arr, predicted_arr = _aligned(actual, predicted)
    denom = np.abs(actual_arr).sum()
    if denom == 0:
        return np.nan
    return float(np.abs(actual_arr - predicted_arr).sum() / denom)


def mase(
    actual: pd.Series | np.ndarray,
    predicted: pd.Series | np.ndarray,
    insample: pd.Series | np.ndarray,
    season_length: int,
) -> float:
    insample_arr = np.asarray(insample, dtype=float)
    if season_length < 1:
        season_length = 1
    if insample_arr.size <= season_length:
        return np.nan
    denom = np.nanmean(np.abs(insample_arr[season_length:] - insample_arr[:-season_length]))
    if not np.isfinite(denom) or denom == 0:
        return np.nan
    actual_arr, predicted_arr = _aligned(actual, predicted)
    if actual_arr.size == 0:
        return np.nan
    mae = np.mean(np.abs(actual_arr - predicted_arr))
    return float(mae / denom)
