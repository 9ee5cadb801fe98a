"""
Uniform prior over a bounded parameter box.

Each parameter is drawn independently from Uniform(lower, upper).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

MOVEMENT_PARAMETERS = ("movement_length", "error_sd")


@dataclass(frozen=True)
class ParameterBounds:
    name: str
    lower: float
    upper: float

    def __post_init__(self):
        if not (math.isfinite(self.lower) and math.isfinite(self.upper)):
            raise ValueError(f"prior bounds for {self.name} must be finite")
        if self.lower > self.upper:
            raise ValueError(
                f"prior lower bound exceeds upper bound for {self.name}: {self.lower} > {self.upper}"
            )

    @property
    def width(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class CandidateParameters:
    """One draw from the prior, keyed by parameter name."""

    values: Tuple[Tuple[str, float], ...]

    def as_dict(self) -> Dict[str, float]:
        return dict(self.values)

    def as_array(self) -> np.ndarray:
        return np.array([v for _, v in self.values], dtype=np.float64)

    def __getitem__(self, name: str) -> float:
        return self.as_dict()[name]


class UniformBoxPrior:
    def __init__(self, bounds: Sequence[ParameterBounds]):
        if not bounds:
            raise ValueError("prior needs at least one parameter")
        names = [b.name for b in bounds]
        if len(set(names)) != len(names):
            raise ValueError("prior parameter names must be unique")
        self.bounds = tuple(bounds)

    @classmethod
    def from_mapping(cls, ranges: Mapping[str, Sequence[float]]) -> "UniformBoxPrior":
        """Build from {name: [lower, upper]}."""

        bounds = []
        for name, pair in ranges.items():
            if len(pair) != 2:
                raise ValueError(f"prior for {name} must be [lower, upper]")
            bounds.append(ParameterBounds(name=str(name), lower=float(pair[0]), upper=float(pair[1])))
        return cls(bounds)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(b.name for b in self.bounds)

    @property
    def lower(self) -> np.ndarray:
        return np.array([b.lower for b in self.bounds], dtype=np.float64)

    @property
    def upper(self) -> np.ndarray:
        return np.array([b.upper for b in self.bounds], dtype=np.float64)

    def sample(self, rng: np.random.Generator) -> CandidateParameters:
        draws = rng.uniform(self.lower, self.upper)
        return self.candidate(draws)

    def candidate(self, values: Sequence[float]) -> CandidateParameters:
        values = [float(v) for v in values]
        if len(values) != len(self.bounds):
            raise ValueError("candidate dimension does not match the prior")
        return CandidateParameters(values=tuple(zip(self.names, values)))

    def contains(self, values: Sequence[float]) -> bool:
        arr = np.asarray(values, dtype=np.float64)
        return bool(np.all(arr >= self.lower) and np.all(arr <= self.upper))

    def to_dict(self) -> Dict[str, Tuple[float, float]]:
        return {b.name: (b.lower, b.upper) for b in self.bounds}


def default_movement_prior(upper: float = 5.0) -> UniformBoxPrior:
    """Uniform(0, upper) on movement length and observation error sd."""

    return UniformBoxPrior([ParameterBounds(name, 0.0, upper) for name in MOVEMENT_PARAMETERS])
