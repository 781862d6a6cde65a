"""
Nearest-neighbour forecasts from a state space reconstruction.

For every allowed focal row the ``E + 1`` nearest earlier neighbours are
found (``E`` is the embedding dimension) and weighted by
``exp(-d / d_nearest)``. The neighbours are then projected one step forward:
the response observed just after each neighbour, weighted the same way,
forecasts the response just after the focal point.
"""

from __future__ import annotations

import logging

import numpy as np

from eedm.distances import DistanceMatrix
from eedm.errors import ArgumentError
from eedm.ssr import StateSpaceReconstruction, standardize

logger = logging.getLogger(__name__)


def _as_vector(x, name: str) -> np.ndarray:
    try:
        v = np.asarray(x, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(f"{name} must be numeric") from exc
    if v.ndim != 1:
        raise ArgumentError(f"{name} must be a vector, got shape {v.shape}")
    return v


def neighbour_weights(nbr_dist: np.ndarray) -> np.ndarray:
    """
    Exponential weights of sorted neighbour distances, one row per focal point.

    Neighbours as near as the nearest one all share its weight, so only the
    relative weights matter. When the nearest distance is zero the formula
    is undefined; neighbours at distance zero then weigh 1 and all others 0.
    """
    nbr_dist = np.asarray(nbr_dist, dtype=np.float64)
    nearest = nbr_dist[:, :1]
    with np.errstate(divide="ignore", invalid="ignore"):
        weights = np.exp(-nbr_dist / nearest)
    coincident = nearest[:, 0] == 0
    weights[coincident] = (nbr_dist[coincident] == 0).astype(np.float64)
    return weights


def forecast(
    ssr: StateSpaceReconstruction,
    distances: DistanceMatrix,
    within_row: bool = False,
    observed=None,
    beyond: bool = False,
) -> np.ndarray:
    """
    Forecast the standardised response by projecting nearest neighbours.

    Args:
        ssr: State space reconstruction used to build ``distances``.
        distances: Masked distance matrix from ``build_distance_matrix``.
        within_row: Gather projected values from ``observed`` instead of the
            response column. Appropriate when the response is indexed by a
            generating event but realised later (e.g. recruitment indexed by
            brood year); the SSR must then be built without the response.
        observed: Response values on the original scale, one per SSR row.
            Required when ``within_row`` is True; standardised before use.
        beyond: Also forecast the time step after the last row.

    Returns:
        Standardised forecasts of length ``ssr.n_rows`` (plus one when
        ``beyond``); NaN where no forecast is possible.
    """
    if not isinstance(ssr, StateSpaceReconstruction):
        raise ArgumentError(f"ssr must be a StateSpaceReconstruction, got {type(ssr).__name__}")
    if not isinstance(distances, DistanceMatrix):
        raise ArgumentError(f"distances must be a DistanceMatrix, got {type(distances).__name__}")

    n_rows = ssr.n_rows
    if distances.n_rows != n_rows:
        raise ArgumentError(
            f"distances has {distances.n_rows} rows but the ssr has {n_rows}"
        )

    if within_row:
        if observed is None:
            raise ArgumentError("observed is required when within_row is True")
        observed = _as_vector(observed, "observed")
        if observed.shape[0] != n_rows:
            raise ArgumentError(
                f"observed must have length {n_rows}, got {observed.shape[0]}"
            )
        if ssr.include_response:
            raise ArgumentError(
                "within-row forecasts need a state space reconstruction that "
                "excludes the response"
            )
        targets = standardize(observed)
    else:
        targets = ssr.response_values

    num_nbrs = ssr.n_dims + 1
    out = np.full(n_rows + 1, np.nan)

    enough = distances.neighbour_counts() >= num_nbrs
    rows = np.flatnonzero(enough)
    if rows.size:
        # Disallowed cells sort last
        d = np.where(distances.valid[rows], distances.values[rows], np.inf)
        nbr_inds = np.argsort(d, axis=1, kind="stable")[:, :num_nbrs]
        nbr_dist = np.take_along_axis(d, nbr_inds, axis=1)
        nbr_wts = neighbour_weights(nbr_dist)

        # Row i's neighbours forecast row i + 1 from their own successors
        proj_inds = nbr_inds + 1
        proj_vals = targets[proj_inds]
        out[rows + 1] = (proj_vals * nbr_wts).sum(axis=1) / nbr_wts.sum(axis=1)

    logger.debug(
        "Forecast %d of %d rows with %d neighbours each",
        int(np.isfinite(out).sum()), n_rows, num_nbrs,
    )
    return out if beyond else out[:n_rows]


def rescale(observed, forecast) -> np.ndarray:
    """
    Map standardised forecasts back to the scale of the observed response.

    Args:
        observed: Observed response values; NaN marks missing values.
        forecast: Standardised forecasts of the same length.

    Returns:
        ``mean(observed) + forecast * sd(observed)``, moments ignoring NaN.
    """
    x = _as_vector(observed, "observed")
    y = _as_vector(forecast, "forecast")
    if x.size == 0 or y.size == 0:
        raise ArgumentError("observed and forecast must not be empty")
    if np.isinf(x).any() or np.isinf(y).any():
        raise ArgumentError("observed and forecast must not hold infinite values")
    if x.shape != y.shape:
        raise ArgumentError(
            f"observed and forecast must have equal lengths, got {x.size} and {y.size}"
        )

    finite = x[np.isfinite(x)]
    mean = finite.mean() if finite.size else np.nan
    sd = finite.std(ddof=1) if finite.size > 1 else np.nan
    return mean + y * sd
