"""
Time interpolation between trajectories sampled on different time bases.
"""

import numpy as np
from scipy.interpolate import interp1d


def match_trajectories(query_times: np.ndarray,
                       source_times: np.ndarray,
                       source_values: np.ndarray) -> np.ndarray:
    """
    Resample a trajectory onto new query times.

    Each coordinate row is interpolated linearly in time. Queries outside the
    source time range take the first or last source value.

    Args:
        query_times: Times to evaluate at, shape (M,)
        source_times: Increasing source times, shape (K,)
        source_values: Source samples, shape (K,) or (D, K)

    Returns:
        Resampled values, shape (M,) or (D, M)
    """
    query_times = np.asarray(query_times, dtype=np.float64)
    source_times = np.asarray(source_times, dtype=np.float64)
    source_values = np.asarray(source_values, dtype=np.float64)

    one_dimensional = source_values.ndim == 1
    rows = np.atleast_2d(source_values)

    if rows.shape[1] != source_times.shape[0]:
        raise ValueError(
            f"Source values have {rows.shape[1]} samples but there are "
            f"{source_times.shape[0]} source times"
        )

    # A single sample is a constant trajectory
    if source_times.shape[0] == 1:
        matched = np.repeat(rows, query_times.shape[0], axis=1)
        return matched[0] if one_dimensional else matched

    matched = np.empty((rows.shape[0], query_times.shape[0]))
    for index, row in enumerate(rows):
        interpolator = interp1d(source_times, row, kind='linear',
                                bounds_error=False, fill_value=(row[0], row[-1]),
                                assume_sorted=True)
        matched[index] = interpolator(query_times)

    return matched[0] if one_dimensional else matched
