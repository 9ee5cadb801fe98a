"""
Process model: a correlated random walk in the plane.

At every step the heading is perturbed by a zero-mean Gaussian turn and the
walker advances by an exponentially distributed step length:

    heading_i = heading_{i-1} + Normal(0, turning_width)
    length_i  ~ Exponential(rate = 1 / movement_length)
    x_i = x_{i-1} + sin(heading_i) * length_i
    y_i = y_{i-1} + cos(heading_i) * length_i
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

TURNING_WIDTH = 1.0
DEFAULT_STEPS = 200
DEFAULT_START: Tuple[float, float, float] = (0.0, 0.0, 0.0)


def _read_only(values: np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class Trajectory:
    """True positions of one simulated walk (steps + 1 points)."""

    x: np.ndarray
    y: np.ndarray
    heading: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "x", _read_only(self.x))
        object.__setattr__(self, "y", _read_only(self.y))
        object.__setattr__(self, "heading", _read_only(self.heading))
        if self.x.shape != self.y.shape:
            raise ValueError("x and y must have the same shape")

    @property
    def steps(self) -> int:
        return int(self.x.shape[0]) - 1

    def end_position(self) -> Tuple[float, float]:
        return float(self.x[-1]), float(self.y[-1])

    def path_length(self) -> float:
        return float(np.sum(np.hypot(np.diff(self.x), np.diff(self.y))))


def simulate_trajectory(
    movement_length: float,
    rng: np.random.Generator,
    start: Tuple[float, float, float] = DEFAULT_START,
    steps: int = DEFAULT_STEPS,
    turning_width: float = TURNING_WIDTH,
) -> Trajectory:
    """Simulate a walk of `steps` moves from `start` = (x, y, heading).

    `movement_length` is the mean step length and must be positive; callers
    validate it (the prior box does) before simulating.
    """

    if steps < 0:
        raise ValueError("steps must be non-negative")
    x0, y0, heading0 = (float(v) for v in start)

    turns = rng.normal(loc=0.0, scale=turning_width, size=steps)
    lengths = rng.exponential(scale=movement_length, size=steps)

    heading = heading0 + np.cumsum(turns)
    x = np.concatenate(([x0], x0 + np.cumsum(np.sin(heading) * lengths)))
    y = np.concatenate(([y0], y0 + np.cumsum(np.cos(heading) * lengths)))
    return Trajectory(x=x, y=y, heading=np.concatenate(([heading0], heading)))
