"""
Observation model: Gaussian measurement error plus sensor dropout.

Both coordinates receive independent Normal(true, error_sd) noise. The
device loses any x reading whose fractional part exceeds 0.7; y readings are
never lost. Missing readings are `pd.NA` in nullable Float64 series.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from movement_abc.simulation.movement_model import Trajectory

MISSING_FRACTION_THRESHOLD = 0.7


@dataclass(frozen=True)
class Observation:
    trajectory: Trajectory
    x_obs: pd.Series
    y_obs: pd.Series

    @property
    def n_missing_x(self) -> int:
        return int(self.x_obs.isna().sum())

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "x": self.trajectory.x,
                "y": self.trajectory.y,
                "x_obs": self.x_obs.array,
                "y_obs": self.y_obs.array,
            }
        )


def dropout_mask(x: np.ndarray, threshold: float = MISSING_FRACTION_THRESHOLD) -> np.ndarray:
    """True where the fractional part of x exceeds the threshold."""

    x = np.asarray(x, dtype=np.float64)
    return (x - np.floor(x)) > threshold


def observe(trajectory: Trajectory, error_sd: float, rng: np.random.Generator) -> Observation:
    """Record a trajectory with the noisy, lossy sensor."""

    if not np.isfinite(error_sd) or error_sd < 0.0:
        raise ValueError("error_sd must be a finite non-negative number")

    x_noisy = rng.normal(loc=trajectory.x, scale=error_sd)
    y_noisy = rng.normal(loc=trajectory.y, scale=error_sd)

    x_obs = pd.Series(x_noisy, dtype="Float64").mask(dropout_mask(x_noisy))
    y_obs = pd.Series(y_noisy, dtype="Float64")
    return Observation(trajectory=trajectory, x_obs=x_obs, y_obs=y_obs)
