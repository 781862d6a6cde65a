"""
State space reconstruction (SSR).

Rows of an SSR are points in the reconstructed state space: the unlagged
response followed by the lagged explanatory variables, each centred on its
mean and scaled by its standard deviation. The SSR always has one row per
table row; rows whose lags run past the table boundary hold NaN.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

import numpy as np
import pandas as pd

from eedm.errors import ArgumentError
from eedm.lags import LagSpec, create_lags, flatten_lags

logger = logging.getLogger(__name__)


def as_table(table) -> pd.DataFrame:
    if isinstance(table, pd.DataFrame):
        return table
    if isinstance(table, Mapping):
        try:
            return pd.DataFrame(dict(table))
        except ValueError as exc:
            raise ArgumentError(f"table columns must have equal lengths: {exc}") from exc
    raise ArgumentError(f"table must be a DataFrame or a mapping, got {type(table).__name__}")


def standardize(x) -> np.ndarray:
    """
    Centre a vector on its mean and scale it by its sample standard deviation.

    Both moments ignore missing values. A constant vector yields NaN.
    """
    x = np.asarray(x, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (x - _nanmean(x)) / _nansd(x)


def _nanmean(x: np.ndarray) -> float:
    finite = x[np.isfinite(x)]
    return float(finite.mean()) if finite.size else np.nan


def _nansd(x: np.ndarray) -> float:
    finite = x[np.isfinite(x)]
    return float(finite.std(ddof=1)) if finite.size > 1 else np.nan


@dataclass(frozen=True)
class StateSpaceReconstruction:
    """
    Standardised embedding matrix with named columns.

    Attributes:
        values: Array of shape (n_rows, n_dims), NaN where missing.
        columns: Column names; the response name (when included) then
            ``variable_lag`` names in canonical lag order.
        response: Name of the response variable.
        lags: Flattened (variable, lag) pairs of the explanatory columns.
        means: Mean of each standardised source variable.
        sds: Standard deviation of each standardised source variable.
        include_response: Whether the first column is the response.
    """

    values: np.ndarray
    columns: tuple[str, ...]
    response: str
    lags: tuple[tuple[str, int], ...]
    means: Mapping[str, float]
    sds: Mapping[str, float]
    include_response: bool = True

    def __post_init__(self):
        self.values.setflags(write=False)
        object.__setattr__(self, "means", MappingProxyType(dict(self.means)))
        object.__setattr__(self, "sds", MappingProxyType(dict(self.sds)))

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_dims(self) -> int:
        """Embedding dimension (number of columns)."""
        return self.values.shape[1]

    @property
    def missing_rows(self) -> np.ndarray:
        """Boolean mask of rows holding at least one missing value."""
        return ~np.isfinite(self.values).all(axis=1)

    @property
    def response_values(self) -> np.ndarray:
        if not self.include_response:
            raise ArgumentError("this state space reconstruction excludes the response")
        return self.values[:, 0]

    def to_frame(self, index=None) -> pd.DataFrame:
        return pd.DataFrame(np.array(self.values), columns=list(self.columns), index=index)

    def __repr__(self) -> str:
        return (
            f"StateSpaceReconstruction(n_rows={self.n_rows}, "
            f"columns={list(self.columns)})"
        )


def build_ssr(
    table,
    response: str,
    lag_spec: LagSpec,
    include_response: bool = True,
) -> StateSpaceReconstruction:
    """
    Build the state space reconstruction of a response and lagged predictors.

    Args:
        table: DataFrame (or mapping of columns) in time order.
        response: Column name of the response variable.
        lag_spec: Mapping of explanatory variable name to its lags.
        include_response: Put the standardised response in the first column.
            Within-row forecasting sets this to False, in which case the
            response may not appear in ``lag_spec`` either.

    Returns:
        StateSpaceReconstruction with ``len(table)`` rows.

    Example:
        >>> d = pd.DataFrame({"x": range(1, 11), "y": range(11, 21)})
        >>> build_ssr(d, "x", {"y": [0, 1, 2, 3]}).columns
        ('x', 'y_0', 'y_1', 'y_2', 'y_3')
    """
    data = as_table(table)
    pairs = flatten_lags(lag_spec)

    if not include_response and response in lag_spec:
        raise ArgumentError(
            f"response {response!r} must be omitted from lag_spec when it is "
            "excluded from the embedding"
        )
    if not include_response and not pairs:
        raise ArgumentError("the embedding has no columns: lag_spec is empty")

    leading = [response] if include_response else []
    variables = list(dict.fromkeys([*leading, *(name for name, _ in pairs)]))
    missing = [name for name in variables if name not in data.columns]
    if missing:
        raise ArgumentError(f"table has no column(s) {missing}")

    Z = data[variables]
    non_numeric = [name for name in variables if not pd.api.types.is_numeric_dtype(Z[name])]
    if non_numeric:
        raise ArgumentError(f"column(s) {non_numeric} are not numeric")
    Z = Z.to_numpy(dtype=np.float64, na_value=np.nan)

    means = {name: _nanmean(Z[:, j]) for j, name in enumerate(variables)}
    sds = {name: _nansd(Z[:, j]) for j, name in enumerate(variables)}
    flat = [name for name in variables if not sds[name] > 0]
    if flat:
        logger.warning("Zero or undefined standard deviation for %s; values become NaN", flat)

    with np.errstate(divide="ignore", invalid="ignore"):
        Y = (Z - np.array([means[v] for v in variables])) / np.array([sds[v] for v in variables])

    position = {name: j for j, name in enumerate(variables)}
    blocks = []
    columns = []
    if include_response:
        blocks.append(Y[:, [position[response]]])
        columns.append(response)
    if pairs:
        lagged = create_lags(
            Y[:, [position[name] for name, _ in pairs]],
            [lag for _, lag in pairs],
        )
        blocks.append(lagged)
        columns.extend(f"{name}_{lag}" for name, lag in pairs)

    X = np.hstack(blocks)
    logger.debug("Built SSR with shape %s and columns %s", X.shape, columns)

    return StateSpaceReconstruction(
        values=X,
        columns=tuple(columns),
        response=response,
        lags=pairs,
        means=means,
        sds=sds,
        include_response=include_response,
    )
