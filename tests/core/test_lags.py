"""Tests for the lag operator and lag-specification utilities."""

import numpy as np
import pytest

from eedm.errors import ArgumentError
from eedm.lags import (
    binary,
    create_lags,
    enumerate_subset_lags,
    flatten_lags,
    lag_column_names,
    superset_columns,
)


# ── create_lags ───────────────────────────────────────────────────────


def test_lag_zero_is_identity():
    v = np.arange(1.0, 11.0)
    np.testing.assert_array_equal(create_lags(v, 0), v)


@pytest.mark.parametrize("n", [-12, -3, -1, 0, 1, 3, 12])
def test_lag_preserves_length(n):
    v = np.arange(1.0, 11.0)
    assert create_lags(v, n).shape == v.shape


def test_positive_lag_pads_front():
    out = create_lags(np.arange(1, 11), 3)
    assert np.all(np.isnan(out[:3]))
    np.testing.assert_array_equal(out[3:], np.arange(1.0, 8.0))


def test_negative_lag_pads_back():
    out = create_lags(np.arange(1, 11), -2)
    np.testing.assert_array_equal(out[:8], np.arange(3.0, 11.0))
    assert np.all(np.isnan(out[8:]))


def test_lag_longer_than_vector_is_all_missing():
    assert np.all(np.isnan(create_lags([1, 2, 3], 5)))


def test_scalar_lag_broadcasts_to_columns():
    m = np.column_stack([np.arange(1, 11), np.arange(1, 11)])
    out = create_lags(m, 3)
    assert out.shape == (10, 2)
    np.testing.assert_array_equal(out[:, 0], out[:, 1])


def test_lag_per_column():
    m = np.column_stack([np.arange(1, 11)] * 3)
    out = create_lags(m, [0, 1, -1])
    np.testing.assert_array_equal(out[:, 0], np.arange(1.0, 11.0))
    assert np.isnan(out[0, 1]) and out[1, 1] == 1.0
    assert out[0, 2] == 2.0 and np.isnan(out[-1, 2])


def test_input_is_not_modified():
    m = np.column_stack([np.arange(1.0, 6.0)] * 2)
    before = m.copy()
    create_lags(m, [1, 2])
    np.testing.assert_array_equal(m, before)


def test_lag_count_mismatch_raises():
    m = np.ones((10, 3))
    with pytest.raises(ArgumentError, match="length 1 or 3"):
        create_lags(m, [1, 2])


def test_non_integer_lag_raises():
    with pytest.raises(ArgumentError, match="integer"):
        create_lags([1.0, 2.0, 3.0], 1.5)


def test_non_numeric_input_raises():
    with pytest.raises(ArgumentError):
        create_lags(["a", "b"], 1)


# ── flatten_lags ──────────────────────────────────────────────────────


def test_flatten_order():
    pairs = flatten_lags({"a": [0, 1, 2], "b": [0, 1]})
    assert pairs == (("a", 0), ("a", 1), ("a", 2), ("b", 0), ("b", 1))


def test_column_names():
    assert lag_column_names({"y": [0, -1], "z": [2]}) == ["y_0", "y_-1", "z_2"]


def test_duplicate_lag_raises():
    with pytest.raises(ArgumentError, match="duplicate"):
        flatten_lags({"a": [1, 1]})


def test_lag_spec_must_be_mapping():
    with pytest.raises(ArgumentError):
        flatten_lags([("a", 1)])


# ── binary ────────────────────────────────────────────────────────────


def test_binary_digits():
    assert binary(10, digits=8) == [0, 0, 0, 0, 1, 0, 1, 0]
    assert binary(0) == []
    assert binary(5) == [1, 0, 1]


def test_binary_insufficient_digits_raises():
    with pytest.raises(ArgumentError, match="digits"):
        binary(8, digits=3)


def test_binary_negative_raises():
    with pytest.raises(ArgumentError):
        binary(-1)


def test_binary_non_integer_digits_raises():
    with pytest.raises(ArgumentError, match="digits must be an integer"):
        binary(3, digits=2.5)
    with pytest.raises(ArgumentError, match="digits must be an integer"):
        binary(3, digits="4")


# ── enumerate_subset_lags ─────────────────────────────────────────────


def test_subset_count():
    lags = {"a": [0, 1, 2], "b": [0, 1]}
    subsets = enumerate_subset_lags(lags)
    assert len(subsets) == 2**5 - 1


def test_subsets_distinct_and_cover_all_pairs():
    lags = {"a": [0, 1, 2], "b": [0, 1]}
    pair_sets = [frozenset(flatten_lags(s)) for s in enumerate_subset_lags(lags)]
    assert len(set(pair_sets)) == len(pair_sets)
    assert all(pair_sets)
    assert frozenset().union(*pair_sets) == frozenset(flatten_lags(lags))


def test_subset_bit_order():
    subsets = enumerate_subset_lags({"a": [0, 1], "b": [5]})
    assert subsets == [
        {"a": (0,)},
        {"a": (1,)},
        {"a": (0, 1)},
        {"b": (5,)},
        {"a": (0,), "b": (5,)},
        {"a": (1,), "b": (5,)},
        {"a": (0, 1), "b": (5,)},
    ]


def test_empty_variables_are_dropped():
    subsets = enumerate_subset_lags({"a": [0], "b": [0]})
    assert "a" not in subsets[1]
    assert list(subsets[1]) == ["b"]


def test_empty_lag_spec_has_no_subsets():
    assert enumerate_subset_lags({}) == []


def test_enumeration_is_deterministic():
    lags = {"a": [0, 1], "b": [2, 3]}
    assert enumerate_subset_lags(lags) == enumerate_subset_lags(lags)


# ── superset_columns ──────────────────────────────────────────────────


def test_superset_columns_indicators():
    out = superset_columns(4, {"b": [1]}, superset={"a": [0, 1], "b": [1]})
    assert list(out.columns) == ["a_0", "a_1", "b_1"]
    assert out.shape == (4, 3)
    np.testing.assert_array_equal(out.iloc[0].to_numpy(), [0, 0, 1])


def test_superset_defaults_to_lags():
    out = superset_columns(2, {"a": [0, 1]})
    assert (out.to_numpy() == 1).all()


def test_superset_unknown_lag_raises():
    with pytest.raises(ArgumentError, match="superset"):
        superset_columns(3, {"a": [2]}, superset={"a": [0, 1]})
