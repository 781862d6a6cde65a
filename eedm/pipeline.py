"""
One forecasting pass per embedding, and one pass per subset embedding.

``single_view_forecast`` chains the SSR, distance, forecast and rescale
steps for a single lag specification. ``subset_view_forecasts`` repeats it
for every subset of the lag specification, returning the outputs in subset
order. Ranking or combining those outputs is left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from eedm.distances import DistanceMatrix, build_distance_matrix, count_ssr_points
from eedm.errors import ArgumentError
from eedm.forecasts import forecast, rescale
from eedm.lags import enumerate_subset_lags, flatten_lags
from eedm.ssr import StateSpaceReconstruction, as_table, build_ssr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddingConfig:
    response: str                                   # response column name
    lags: Mapping[str, Sequence[int]] = field(default_factory=dict)
    within_row: bool = False                        # response excluded from the SSR
    training_window: bool = False                   # keep every focal row from the first
    beyond: bool = False                            # forecast one step past the table

    def __post_init__(self):
        if not isinstance(self.response, str) or not self.response:
            raise ArgumentError(f"response must be a non-empty string, got {self.response!r}")
        flatten_lags(self.lags)

    def with_lags(self, lags: Mapping[str, Sequence[int]]) -> EmbeddingConfig:
        return EmbeddingConfig(
            response=self.response,
            lags=lags,
            within_row=self.within_row,
            training_window=self.training_window,
            beyond=self.beyond,
        )


@dataclass(frozen=True)
class EmbeddingForecast:
    """Outputs of one forecasting pass over a single embedding."""

    lags: Mapping[str, Sequence[int]]
    ssr: StateSpaceReconstruction
    distances: DistanceMatrix
    forecast: np.ndarray        # standardised, NaN where undefined
    rescaled: np.ndarray        # on the scale of the observed response
    observed: np.ndarray        # NaN-padded to the forecast length

    def __post_init__(self):
        for name in ("forecast", "rescaled", "observed"):
            getattr(self, name).setflags(write=False)

    @property
    def points(self) -> np.ndarray:
        counts = count_ssr_points(self.distances)
        if len(self.forecast) > len(counts):
            counts = np.append(counts, self.distances.neighbour_counts()[-1])
        return counts

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "time": np.arange(len(self.forecast)),
                "observed": self.observed,
                "forecast": self.rescaled,
                "points": self.points,
            }
        )


def single_view_forecast(table, focal_indices: Iterable[int], config: EmbeddingConfig) -> EmbeddingForecast:
    """
    Forecast the response at the focal times from a single embedding.

    Args:
        table: DataFrame (or mapping of columns) in time order.
        focal_indices: 0-based time positions to forecast.
        config: Response, lags and forecasting flags.

    Returns:
        EmbeddingForecast holding the intermediate and final results.
    """
    data = as_table(table)
    if config.response not in data.columns:
        raise ArgumentError(f"table has no column {config.response!r}")
    if not pd.api.types.is_numeric_dtype(data[config.response]):
        raise ArgumentError(f"column {config.response!r} is not numeric")
    focal_indices = list(focal_indices)

    ssr = build_ssr(data, config.response, config.lags, include_response=not config.within_row)
    distances = build_distance_matrix(ssr, focal_indices, training_window=config.training_window)

    observed = data[config.response].to_numpy(dtype=np.float64, na_value=np.nan)
    fc = forecast(
        ssr,
        distances,
        within_row=config.within_row,
        observed=observed if config.within_row else None,
        beyond=config.beyond,
    )
    observed = np.append(observed, [np.nan] * (len(fc) - len(observed)))

    return EmbeddingForecast(
        lags=config.lags,
        ssr=ssr,
        distances=distances,
        forecast=fc,
        rescaled=rescale(observed, fc),
        observed=observed,
    )


def subset_view_forecasts(table, focal_indices: Iterable[int], config: EmbeddingConfig) -> list[EmbeddingForecast]:
    """
    Forecast from every subset embedding of ``config.lags``.

    Element ``i`` of the result belongs to the subset selected by bitmask
    ``i + 1`` (see ``enumerate_subset_lags``). Each pass is independent of
    the others.
    """
    data = as_table(table)
    focal_indices = list(focal_indices)
    subsets = enumerate_subset_lags(config.lags)
    logger.info("Forecasting from %d subset embeddings of %s", len(subsets), dict(config.lags))
    return [single_view_forecast(data, focal_indices, config.with_lags(lags)) for lags in subsets]
