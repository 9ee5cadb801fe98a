"""
Experiment configuration loaded from YAML.

Every section is optional; missing keys fall back to the settings of the
classic movement-model exercise (seed 123, true movement length 2 and
error sd 1, 200 steps, 10000 prior draws over [0, 5] x [0, 5]).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml

from movement_abc.mcmc.regression import ChainControl
from movement_abc.priors.uniform_box_prior import MOVEMENT_PARAMETERS, UniformBoxPrior
from movement_abc.simulation.movement_model import DEFAULT_START, DEFAULT_STEPS, TURNING_WIDTH


def _section(raw: Any, name: str) -> Dict[str, Any]:
    """A YAML mapping section; absent or null means defaults."""

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{name} section must be a mapping, got {type(raw).__name__}")
    return raw


def _bounds(name: str, raw: Any) -> Tuple[float, ...]:
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"prior for {name} must be [lower, upper]")
    return tuple(float(b) for b in raw)


@dataclass(frozen=True)
class ModelConfig:
    steps: int = DEFAULT_STEPS
    start: Tuple[float, float, float] = DEFAULT_START
    turning_width: float = TURNING_WIDTH

    def __post_init__(self):
        if self.steps < 2:
            raise ValueError("model.steps must be >= 2 for the lag-2 summary")
        if len(self.start) != 3:
            raise ValueError("model.start must be [x, y, heading]")
        if self.turning_width < 0.0:
            raise ValueError("model.turning_width must be non-negative")

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ModelConfig":
        raw = raw or {}
        return cls(
            steps=int(raw.get("steps", DEFAULT_STEPS)),
            start=tuple(float(v) for v in raw.get("start", DEFAULT_START)),
            turning_width=float(raw.get("turning_width", TURNING_WIDTH)),
        )


@dataclass(frozen=True)
class TruthConfig:
    """Parameters used to generate the pseudo-observed data."""

    movement_length: float = 2.0
    error_sd: float = 1.0

    def __post_init__(self):
        if self.movement_length <= 0.0:
            raise ValueError("truth.movement_length must be positive")
        if self.error_sd < 0.0:
            raise ValueError("truth.error_sd must be non-negative")


@dataclass(frozen=True)
class RejectionConfig:
    n_draws: int = 10000
    epsilons: Tuple[float, ...] = (1.0, 0.2, 0.1)

    def __post_init__(self):
        if self.n_draws <= 0:
            raise ValueError("rejection.n_draws must be positive")
        if any(e <= 0.0 for e in self.epsilons):
            raise ValueError("rejection.epsilons must be positive")


@dataclass(frozen=True)
class ABCMCMCConfig:
    enabled: bool = False
    epsilon: float = 0.2
    n_iter: int = 2000
    n_chains: int = 2
    proposal_sd: Tuple[float, ...] = (0.2, 0.2)

    def __post_init__(self):
        if not math.isfinite(self.epsilon) or self.epsilon <= 0.0:
            raise ValueError("abc_mcmc.epsilon must be positive")
        if self.n_iter <= 0:
            raise ValueError("abc_mcmc.n_iter must be positive")
        if self.n_chains < 1:
            raise ValueError("abc_mcmc.n_chains must be >= 1")
        if len(self.proposal_sd) != len(MOVEMENT_PARAMETERS):
            raise ValueError("abc_mcmc.proposal_sd needs one entry per prior parameter")
        if any(s <= 0.0 for s in self.proposal_sd):
            raise ValueError("abc_mcmc.proposal_sd entries must be positive")


@dataclass(frozen=True)
class RegressionConfig:
    enabled: bool = False
    n: int = 100
    intercept: float = 0.0
    slope: float = 5.0
    sigma: float = 5.0
    n_chains: int = 3
    n_iter: int = 5000
    burn_in: int = 1000
    thin: int = 1
    proposal_scale: Tuple[float, ...] = (0.5, 0.5, 0.3)

    def __post_init__(self):
        if self.n <= 2:
            raise ValueError("regression.n must exceed 2")
        if self.sigma < 0.0:
            raise ValueError("regression.sigma must be non-negative")
        if len(self.proposal_scale) != 3:
            raise ValueError("regression.proposal_scale must be [intercept, slope, sigma]")
        if any(s <= 0.0 for s in self.proposal_scale):
            raise ValueError("regression.proposal_scale entries must be positive")
        # Surfaces n_chains / n_iter / burn_in / thin errors at load time.
        self.chain_control()

    def chain_control(self) -> ChainControl:
        return ChainControl(n_chains=self.n_chains, n_iter=self.n_iter, burn_in=self.burn_in, thin=self.thin)


@dataclass
class ABCConfig:
    seed: int = 123
    model: ModelConfig = field(default_factory=ModelConfig)
    truth: TruthConfig = field(default_factory=TruthConfig)
    observed_statistics: Optional[List[float]] = None
    prior: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: {name: (0.0, 5.0) for name in MOVEMENT_PARAMETERS}
    )
    rejection: RejectionConfig = field(default_factory=RejectionConfig)
    abc_mcmc: ABCMCMCConfig = field(default_factory=ABCMCMCConfig)
    regression: RegressionConfig = field(default_factory=RegressionConfig)
    log_level: str = "INFO"

    def build_prior(self) -> UniformBoxPrior:
        prior = UniformBoxPrior.from_mapping(self.prior)
        if prior.names != MOVEMENT_PARAMETERS:
            raise ValueError(f"prior must define exactly {list(MOVEMENT_PARAMETERS)} in that order")
        return prior

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "ABCConfig":
        raw = _section(raw, "config")
        truth = _section(raw.get("truth"), "truth")
        rej = _section(raw.get("rejection"), "rejection")
        mcmc = _section(raw.get("abc_mcmc"), "abc_mcmc")
        reg = _section(raw.get("regression"), "regression")
        logging_cfg = _section(raw.get("logging"), "logging")
        prior_raw = raw.get("prior")
        if prior_raw is None:
            prior_raw = {name: (0.0, 5.0) for name in MOVEMENT_PARAMETERS}
        prior_raw = _section(prior_raw, "prior")
        observed = raw.get("observed_statistics")
        if observed is not None:
            observed = [float(v) for v in observed]
            if len(observed) != 2:
                raise ValueError("observed_statistics must hold two values")

        cfg = cls(
            seed=int(raw.get("seed", 123)),
            model=ModelConfig.from_dict(_section(raw.get("model"), "model")),
            truth=TruthConfig(
                movement_length=float(truth.get("movement_length", 2.0)),
                error_sd=float(truth.get("error_sd", 1.0)),
            ),
            observed_statistics=observed,
            # Bounds stay as given so the prior checks their arity.
            prior={str(k): _bounds(str(k), v) for k, v in prior_raw.items()},
            rejection=RejectionConfig(
                n_draws=int(rej.get("n_draws", 10000)),
                epsilons=tuple(float(e) for e in rej.get("epsilons", (1.0, 0.2, 0.1))),
            ),
            abc_mcmc=ABCMCMCConfig(
                enabled=bool(mcmc.get("enabled", False)),
                epsilon=float(mcmc.get("epsilon", 0.2)),
                n_iter=int(mcmc.get("n_iter", 2000)),
                n_chains=int(mcmc.get("n_chains", 2)),
                proposal_sd=tuple(float(v) for v in mcmc.get("proposal_sd", (0.2, 0.2))),
            ),
            regression=RegressionConfig(
                enabled=bool(reg.get("enabled", False)),
                n=int(reg.get("n", 100)),
                intercept=float(reg.get("intercept", 0.0)),
                slope=float(reg.get("slope", 5.0)),
                sigma=float(reg.get("sigma", 5.0)),
                n_chains=int(reg.get("n_chains", 3)),
                n_iter=int(reg.get("n_iter", 5000)),
                burn_in=int(reg.get("burn_in", 1000)),
                thin=int(reg.get("thin", 1)),
                proposal_scale=tuple(float(v) for v in reg.get("proposal_scale", (0.5, 0.5, 0.3))),
            ),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
        )
        # Fail on bad bounds at load time, before any simulation.
        cfg.build_prior()
        return cfg


def load_abc_config(path: str) -> ABCConfig:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return ABCConfig.from_dict(raw)
