"""
Distances between points of a state space reconstruction.

Row index corresponds to focal point time and column index to neighbour
time. Disallowed focal point and neighbour combinations are marked invalid
in a boolean mask kept next to the distance values (and hold NaN there):

- neighbours at or after the focal time (no self-comparison, no future),
- focal points and neighbours with a missing value,
- neighbours that project onto a point with a missing value,
- focal rows that do not forecast a requested time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from scipy.spatial.distance import cdist

from eedm.errors import ArgumentError
from eedm.ssr import StateSpaceReconstruction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistanceMatrix:
    """
    Masked focal-to-neighbour distance matrix.

    Attributes:
        values: Array of shape (n_rows, n_rows); NaN where not allowed.
        valid: Boolean array of the same shape, True where allowed.
    """

    values: np.ndarray
    valid: np.ndarray

    def __post_init__(self):
        if self.values.shape != self.valid.shape or self.values.ndim != 2:
            raise ArgumentError(
                f"values and valid must be matching square matrices, got "
                f"{self.values.shape} and {self.valid.shape}"
            )
        if self.values.shape[0] != self.values.shape[1]:
            raise ArgumentError(f"distance matrix must be square, got {self.values.shape}")
        self.values.setflags(write=False)
        self.valid.setflags(write=False)

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    def neighbour_counts(self) -> np.ndarray:
        """Number of allowed neighbours of each focal row."""
        return self.valid.sum(axis=1)


def _focal_indices(index: Iterable[int], n_rows: int) -> np.ndarray:
    try:
        idx = np.asarray(list(index))
    except TypeError as exc:
        raise ArgumentError(f"focal_indices must be iterable, got {type(index).__name__}") from exc
    if idx.size == 0:
        raise ArgumentError("focal_indices must not be empty")
    if idx.ndim != 1 or not np.issubdtype(idx.dtype, np.integer):
        raise ArgumentError(f"focal_indices must be a vector of integers, got dtype {idx.dtype}")
    if idx.min() < 0 or idx.max() >= n_rows:
        raise ArgumentError(
            f"focal_indices must lie in [0, {n_rows}), got [{idx.min()}, {idx.max()}]"
        )
    return np.unique(idx)


def build_distance_matrix(
    ssr: StateSpaceReconstruction,
    focal_indices: Iterable[int],
    training_window: bool = False,
) -> DistanceMatrix:
    """
    Compute the allowed neighbour distances for forecasting the focal times.

    The forecast for time ``t`` projects the neighbours of the point at
    ``t - 1`` one step forward, so distance row ``t - 1`` is kept for every
    focal time ``t``.

    Args:
        ssr: State space reconstruction whose rows are points.
        focal_indices: 0-based time positions to forecast.
        training_window: Keep every focal row from ``min(focal_indices) - 1``
            onward instead of only the requested ones.

    Returns:
        DistanceMatrix of shape (n_rows, n_rows).
    """
    if not isinstance(ssr, StateSpaceReconstruction):
        raise ArgumentError(f"ssr must be a StateSpaceReconstruction, got {type(ssr).__name__}")

    n_rows = ssr.n_rows
    focal = _focal_indices(focal_indices, n_rows)

    # Whole rows go missing so no distance is computed from partial components
    na_rows = ssr.missing_rows
    points = np.array(ssr.values)
    points[na_rows, :] = np.nan

    with np.errstate(invalid="ignore"):
        values = cdist(points, points, metric="euclidean")

    valid = np.tril(np.ones((n_rows, n_rows), dtype=bool), k=-1)

    na_idx = np.flatnonzero(na_rows)
    na_proj = na_idx[na_idx - 1 >= 0] - 1
    valid[na_idx, :] = False
    valid[:, na_idx] = False
    valid[:, na_proj] = False

    keep = np.zeros(n_rows, dtype=bool)
    if training_window:
        keep[max(focal.min() - 1, 0):] = True
    else:
        rows = focal - 1
        keep[rows[rows >= 0]] = True
    valid[~keep, :] = False

    values[~valid] = np.nan
    logger.debug(
        "Distance matrix %dx%d: %d missing rows, %d focal rows, %d allowed pairs",
        n_rows, n_rows, na_idx.size, int(keep.sum()), int(valid.sum()),
    )
    return DistanceMatrix(values=values, valid=valid)


def count_ssr_points(distances: DistanceMatrix) -> np.ndarray:
    """
    Count the state space points available to each forecast.

    Element ``t`` is the number of allowed neighbours of focal row ``t - 1``,
    which are the points projected forward to forecast time ``t``. The first
    time has no earlier focal row and counts 0.
    """
    counts = distances.neighbour_counts()
    return np.concatenate([[0], counts])[: distances.n_rows].astype(np.int64)
