"""
Lag operator and lag-specification utilities.

A lag specification maps each explanatory variable name to the integer lags
used for it, e.g. ``{"a": [0, 1, 2], "b": [0, 1]}``. Flattening it variable
by variable and lag by lag gives the canonical order of (variable, lag)
pairs used for column names (``a_0, a_1, a_2, b_0, b_1``) and for numbering
the subset embeddings.
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from eedm.errors import ArgumentError

logger = logging.getLogger(__name__)

LagSpec = Mapping[str, Sequence[int]]


def _as_int_lag(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ArgumentError(f"{name} must be an integer, got {value!r}")
    if not np.isfinite(value) or int(value) != value:
        raise ArgumentError(f"{name} must be an integer, got {value!r}")
    return int(value)


def create_lags(x, n: int | Sequence[int] = 1) -> np.ndarray:
    """
    Shift a vector, or each column of a matrix, by an integer number of rows.

    Positive lags shift toward the past (the front is padded with NaN and
    trailing values are dropped), negative lags shift toward the future (the
    back is padded with NaN). Lag 0 is the identity.

    Args:
        x: 1-D vector or 2-D matrix whose columns are lagged independently.
        n: One lag applied to every column, or one lag per column.

    Returns:
        Float array with the same shape as ``x``.

    Example:
        >>> create_lags([1, 2, 3, 4], 1)
        array([nan,  1.,  2.,  3.])
    """
    try:
        m = np.array(x, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(f"x must be numeric, got {type(x).__name__}") from exc

    if m.ndim not in (1, 2):
        raise ArgumentError(f"x must be a vector or matrix, got ndim={m.ndim}")
    is_vector = m.ndim == 1
    if is_vector:
        m = m.reshape(-1, 1)

    n_rows, n_cols = m.shape
    lags = np.atleast_1d(np.asarray(n, dtype=object))
    if lags.ndim != 1:
        raise ArgumentError(f"n must be a scalar or a vector, got shape {lags.shape}")
    lags = [_as_int_lag(lag, "n") for lag in lags]
    if len(lags) == 1:
        lags = lags * n_cols
    elif len(lags) != n_cols:
        raise ArgumentError(
            f"n must have length 1 or {n_cols} (one lag per column), got {len(lags)}"
        )

    out = np.full_like(m, np.nan)
    for j, lag in enumerate(lags):
        if abs(lag) >= n_rows:
            continue
        if lag >= 0:
            out[lag:, j] = m[: n_rows - lag, j]
        else:
            out[: n_rows + lag, j] = m[-lag:, j]

    return out[:, 0] if is_vector else out


def flatten_lags(lag_spec: LagSpec) -> tuple[tuple[str, int], ...]:
    """Return the canonical ordered (variable, lag) pairs of a lag spec."""
    if not isinstance(lag_spec, Mapping):
        raise ArgumentError(f"lag_spec must be a mapping, got {type(lag_spec).__name__}")

    pairs = []
    for name, lags in lag_spec.items():
        if not isinstance(name, str) or not name:
            raise ArgumentError(f"lag_spec keys must be non-empty strings, got {name!r}")
        if isinstance(lags, numbers.Real):
            lags = [lags]
        elif isinstance(lags, (str, bytes)) or not isinstance(lags, Iterable):
            raise ArgumentError(f"lags of {name!r} must be integers, got {lags!r}")
        for lag in lags:
            pair = (name, _as_int_lag(lag, f"lag of {name!r}"))
            if pair in pairs:
                raise ArgumentError(f"duplicate lag {pair[1]} for variable {name!r}")
            pairs.append(pair)
    return tuple(pairs)


def lag_column_names(lag_spec: LagSpec) -> list[str]:
    """Column names ``variable_lag`` in canonical order."""
    return [f"{name}_{lag}" for name, lag in flatten_lags(lag_spec)]


def binary(x: int, digits: int | None = None) -> list[int]:
    """
    Represent a non-negative integer as a list of bits, most significant first.

    Args:
        x: Integer >= 0.
        digits: Length of the output; the result is left padded with zeros.

    Returns:
        List of 0/1 integers. ``binary(0)`` is the empty list.

    Raises:
        ArgumentError: If ``x`` is negative or ``digits`` is too short.
    """
    x = _as_int_lag(x, "x")
    if x < 0:
        raise ArgumentError(f"x must be non-negative, got {x}")
    if digits is not None:
        digits = _as_int_lag(digits, "digits")

    bits = []
    while x > 0:
        x, r = divmod(x, 2)
        bits.insert(0, r)

    if digits is not None:
        if digits < len(bits):
            raise ArgumentError(
                f"digits must be at least {len(bits)} to represent the value, got {digits}"
            )
        bits = [0] * (digits - len(bits)) + bits
    return bits


def enumerate_subset_lags(lag_spec: LagSpec) -> list[dict[str, tuple[int, ...]]]:
    """
    Enumerate every non-empty subset of the (variable, lag) pairs of a lag spec.

    Subset ``i`` of the result corresponds to the bitmask ``i + 1``; bit ``b``
    (least significant first) includes the ``b``-th pair of the flattened
    spec. Variables keep their original grouping and order, and a variable
    left without lags is dropped.

    Example:
        >>> enumerate_subset_lags({"a": [0, 1], "b": [0]})[:3]
        [{'a': (0,)}, {'a': (1,)}, {'a': (0, 1)}]
    """
    pairs = flatten_lags(lag_spec)
    n_pairs = len(pairs)

    subsets = []
    for mask in range(1, 2**n_pairs):
        included = binary(mask, digits=n_pairs)[::-1]
        subset: dict[str, tuple[int, ...]] = {}
        for (name, lag), bit in zip(pairs, included):
            if bit:
                subset[name] = subset.get(name, ()) + (lag,)
        subsets.append(subset)

    logger.debug("Enumerated %d subset lag specs from %d lags", len(subsets), n_pairs)
    return subsets


def superset_columns(
    n_rows: int,
    lag_spec: LagSpec,
    superset: LagSpec | None = None,
) -> pd.DataFrame:
    """
    Indicator table of the superset lag columns used by a subset lag spec.

    Args:
        n_rows: Number of rows of the table.
        lag_spec: Lags of the subset embedding.
        superset: Lags of the parent embedding (defaults to ``lag_spec``).

    Returns:
        DataFrame with one ``variable_lag`` column per superset lag, holding 1
        where the subset uses that lag and 0 elsewhere.
    """
    n_rows = _as_int_lag(n_rows, "n_rows")
    if n_rows < 0:
        raise ArgumentError(f"n_rows must be non-negative, got {n_rows}")
    if superset is None:
        superset = lag_spec

    sup_cols = lag_column_names(superset)
    lag_cols = lag_column_names(lag_spec)
    unknown = [col for col in lag_cols if col not in sup_cols]
    if unknown:
        raise ArgumentError(f"lags {unknown} are not in the superset")

    used = np.array([col in lag_cols for col in sup_cols], dtype=np.int64)
    return pd.DataFrame(np.tile(used, (n_rows, 1)), columns=sup_cols)
