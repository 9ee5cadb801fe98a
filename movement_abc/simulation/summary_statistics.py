"""
Summary statistics of an observed track.

stat1: mean displacement between consecutive readings.
stat2: mean displacement over a 2-step lag, divided by 3.

Steps touching a missing reading are skipped. An all-missing input yields
NaN rather than an error.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from movement_abc.simulation.observation_model import Observation

N_SUMMARIES = 2
LAG2_SCALE = 3.0


def mean_ignoring_missing(values: pd.Series) -> float:
    """Mean over the present entries; NaN when nothing is present."""

    present = pd.Series(values).dropna()
    if present.empty:
        return float("nan")
    return float(present.to_numpy(dtype=np.float64).mean())


def lagged_displacement(observation: Observation, lag: int) -> pd.Series:
    """Euclidean displacement between readings `lag` steps apart (nullable)."""

    if lag < 1:
        raise ValueError("lag must be >= 1")
    dx = observation.x_obs - observation.x_obs.shift(lag)
    dy = observation.y_obs - observation.y_obs.shift(lag)
    return (dx * dx + dy * dy) ** 0.5


def summary_statistics(observation: Observation) -> np.ndarray:
    stat1 = mean_ignoring_missing(lagged_displacement(observation, 1))
    stat2 = mean_ignoring_missing(lagged_displacement(observation, 2)) / LAG2_SCALE
    return np.array([stat1, stat2], dtype=np.float64)
