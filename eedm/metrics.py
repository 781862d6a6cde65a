"""
Accuracy metrics for scoring forecasts against observations.

Forecast vectors carry NaN wherever no forecast was possible, so every
metric skips pairs in which either the observation or the forecast is
missing. A metric with no pair left to score is NaN.
"""

import numpy as np

from eedm.errors import ArgumentError


def _paired(observed, forecast) -> tuple[np.ndarray, np.ndarray]:
    o = np.asarray(observed, dtype=np.float64).reshape(-1)
    f = np.asarray(forecast, dtype=np.float64).reshape(-1)
    if o.shape != f.shape:
        raise ArgumentError(
            f"observed and forecast must have equal lengths, got {o.size} and {f.size}"
        )
    keep = np.isfinite(o) & np.isfinite(f)
    return o[keep], f[keep]


def mae(observed, forecast) -> float:
    """
    Compute Mean Absolute Error (MAE).

    Args:
        observed: Observed values
        forecast: Forecast values

    Returns:
        MAE over the scorable pairs as a float.
    """
    o, f = _paired(observed, forecast)
    if o.size == 0:
        return float("nan")
    return float(np.mean(np.abs(f - o)))


def rmse(observed, forecast) -> float:
    """
    Compute Root Mean Squared Error (RMSE).

    Args:
        observed: Observed values
        forecast: Forecast values

    Returns:
        RMSE over the scorable pairs as a float.
    """
    o, f = _paired(observed, forecast)
    if o.size == 0:
        return float("nan")
    return float(np.sqrt(np.mean((f - o) ** 2)))


def mre(observed, forecast) -> float:
    """
    Compute Mean Relative Error (MRE), ``mean(|forecast - observed| / |observed|)``.

    Pairs with a zero observation have no relative error and are skipped.
    """
    o, f = _paired(observed, forecast)
    nonzero = o != 0
    if not nonzero.any():
        return float("nan")
    return float(np.mean(np.abs(f[nonzero] - o[nonzero]) / np.abs(o[nonzero])))


def compute_all_metrics(observed, forecast) -> dict[str, float]:
    """
    Compute all accuracy metrics at once.

    Returns:
        Dictionary with keys 'mae', 'rmse', 'mre' and 'n' (scored pairs).
    """
    o, _ = _paired(observed, forecast)
    return {
        "mae": mae(observed, forecast),
        "rmse": rmse(observed, forecast),
        "mre": mre(observed, forecast),
        "n": int(o.size),
    }
