"""
eedm - Empirical nearest-neighbour forecasting over state space reconstructions.

This package builds standardised, lagged embeddings of a time series, finds
causally allowed nearest neighbours in them and projects those neighbours
one step ahead to forecast a scalar response.
"""

__version__ = "0.1.0"

from eedm.distances import DistanceMatrix, build_distance_matrix, count_ssr_points
from eedm.errors import ArgumentError
from eedm.forecasts import forecast, rescale
from eedm.lags import binary, create_lags, enumerate_subset_lags, flatten_lags, superset_columns
from eedm.pipeline import (
    EmbeddingConfig,
    EmbeddingForecast,
    single_view_forecast,
    subset_view_forecasts,
)
from eedm.ssr import StateSpaceReconstruction, build_ssr, standardize

__all__ = [
    "__version__",
    # errors
    "ArgumentError",
    # lags
    "binary",
    "create_lags",
    "enumerate_subset_lags",
    "flatten_lags",
    "superset_columns",
    # state space reconstruction
    "StateSpaceReconstruction",
    "build_ssr",
    "standardize",
    # distances
    "DistanceMatrix",
    "build_distance_matrix",
    "count_ssr_points",
    # forecasts
    "forecast",
    "rescale",
    # pipeline
    "EmbeddingConfig",
    "EmbeddingForecast",
    "single_view_forecast",
    "subset_view_forecasts",
]
