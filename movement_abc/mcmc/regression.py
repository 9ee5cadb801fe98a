"""
Bayesian linear regression fitted through a generic posterior sampler.

The model is handed to a sampler as a description (a JAGS-dialect model
string plus a Python log posterior), a data mapping and chain controls.
Any sampler honoring `PosteriorSampler` can be plugged in; it must return
one (chains, kept_draws) matrix per parameter. `MetropolisSampler` is the
built-in random-walk implementation.

Priors:
  intercept, slope ~ Normal(0, sd=100)   (JAGS precision 1e-4)
  sigma            ~ Uniform(0, 100)
Likelihood:
  y_i ~ Normal(intercept + slope * x_i, sigma)
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd

from movement_abc.diagnostics.mcmc_diagnostics import effective_sample_size, split_rhat

LINEAR_REGRESSION_JAGS = """
model {
    intercept ~ dnorm(0, 1.0E-4)
    slope ~ dnorm(0, 1.0E-4)
    sigma ~ dunif(0, 100)
    precision <- pow(sigma, -2)

    for (i in 1:n) {
        mu[i] <- intercept + slope * x[i]
        y[i] ~ dnorm(mu[i], precision)
    }
}
"""

PRIOR_SD = 100.0
SIGMA_UPPER = 100.0


def simulate_regression_data(
    n: int,
    intercept: float,
    slope: float,
    sigma: float,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """x ~ Uniform(-1, 1), y ~ Normal(intercept + slope * x, sigma)."""

    if n <= 2:
        raise ValueError("n must be > 2")
    if sigma < 0.0:
        raise ValueError("sigma must be non-negative")
    x = rng.uniform(-1.0, 1.0, size=n)
    y = rng.normal(loc=intercept + slope * x, scale=sigma)
    return pd.DataFrame({"x": x, "y": y})


@dataclass(frozen=True)
class LinearRegressionModel:
    code: str = LINEAR_REGRESSION_JAGS
    parameters: Tuple[str, ...] = ("intercept", "slope", "sigma")

    @staticmethod
    def data_mapping(frame: pd.DataFrame) -> Dict[str, object]:
        return {
            "x": frame["x"].to_numpy(dtype=np.float64),
            "y": frame["y"].to_numpy(dtype=np.float64),
            "n": int(len(frame)),
        }

    def log_posterior(self, theta: np.ndarray, data: Dict[str, object]) -> float:
        intercept, slope, sigma = (float(v) for v in theta)
        if not (0.0 < sigma < SIGMA_UPPER):
            return -math.inf
        x = data["x"]
        y = data["y"]
        resid = y - (intercept + slope * x)
        log_lik = -len(y) * math.log(sigma) - 0.5 * float(np.dot(resid, resid)) / (sigma * sigma)
        log_prior = -0.5 * (intercept * intercept + slope * slope) / (PRIOR_SD * PRIOR_SD)
        return log_lik + log_prior

    def initial_values(self, data: Dict[str, object], rng: np.random.Generator) -> np.ndarray:
        """Jittered least-squares fit, one per chain."""

        x = data["x"]
        y = data["y"]
        design = np.column_stack([np.ones_like(x), x])
        coef, *_ = np.linalg.lstsq(design, y, rcond=None)
        resid_sd = float(np.std(y - design @ coef, ddof=2)) if len(y) > 2 else 1.0
        resid_sd = min(max(resid_sd, 1e-3), SIGMA_UPPER / 2.0)
        jitter = rng.normal(0.0, 0.1, size=3) * np.array([1.0, 1.0, resid_sd])
        init = np.array([coef[0], coef[1], resid_sd]) + jitter
        init[2] = abs(init[2])
        return init


@dataclass(frozen=True)
class ChainControl:
    n_chains: int = 3
    n_iter: int = 5000
    burn_in: int = 1000
    thin: int = 1

    def __post_init__(self):
        if self.n_chains < 1:
            raise ValueError("n_chains must be >= 1")
        if self.burn_in < 0:
            raise ValueError("burn_in must be non-negative")
        if self.n_iter <= self.burn_in:
            raise ValueError("n_iter must exceed burn_in")
        if self.thin < 1:
            raise ValueError("thin must be >= 1")

    @property
    def kept_draws(self) -> int:
        return int(math.ceil((self.n_iter - self.burn_in) / self.thin))


class PosteriorSampler(Protocol):
    def sample(
        self,
        model: LinearRegressionModel,
        data: Dict[str, object],
        control: ChainControl,
    ) -> Dict[str, np.ndarray]:
        ...


@dataclass
class MetropolisSampler:
    """Random-walk Metropolis with a fixed Gaussian proposal per parameter."""

    proposal_scale: Sequence[float]
    rng: np.random.Generator
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def _run_chain(self, model, data, control, rng) -> Tuple[np.ndarray, float]:
        scale = np.asarray(self.proposal_scale, dtype=np.float64)
        theta = model.initial_values(data, rng)
        lp = model.log_posterior(theta, data)
        kept = np.empty((control.kept_draws, len(model.parameters)), dtype=np.float64)
        k = 0
        n_accept = 0
        for it in range(control.n_iter):
            proposal = theta + rng.normal(0.0, scale)
            lp_new = model.log_posterior(proposal, data)
            if math.log1p(-rng.random()) < lp_new - lp:
                theta, lp = proposal, lp_new
                n_accept += 1
            if it >= control.burn_in and (it - control.burn_in) % control.thin == 0:
                kept[k] = theta
                k += 1
        return kept, n_accept / float(control.n_iter)

    def sample(
        self,
        model: LinearRegressionModel,
        data: Dict[str, object],
        control: ChainControl,
    ) -> Dict[str, np.ndarray]:
        if len(self.proposal_scale) != len(model.parameters):
            raise ValueError("proposal_scale needs one entry per model parameter")
        chains = []
        for c, child in enumerate(self.rng.spawn(control.n_chains)):
            kept, rate = self._run_chain(model, data, control, child)
            self.logger.info("Metropolis chain %d: kept=%d acceptance=%.3f", c, kept.shape[0], rate)
            chains.append(kept)
        stacked = np.stack(chains)  # (chains, draws, parameters)
        return {name: stacked[:, :, j] for j, name in enumerate(model.parameters)}


def summarize_posterior(samples: Dict[str, np.ndarray]) -> pd.DataFrame:
    records = []
    for name, mat in samples.items():
        arr = np.asarray(mat, dtype=np.float64)
        flat = arr.ravel()
        q025, q50, q975 = np.percentile(flat, [2.5, 50.0, 97.5])
        records.append(
            {
                "parameter": name,
                "mean": float(flat.mean()),
                "sd": float(flat.std(ddof=1)) if flat.size > 1 else float("nan"),
                "q2.5": float(q025),
                "median": float(q50),
                "q97.5": float(q975),
                "rhat": split_rhat(arr),
                "ess": effective_sample_size(arr),
            }
        )
    return pd.DataFrame.from_records(records)


def fit_linear_regression(
    frame: pd.DataFrame,
    sampler: PosteriorSampler,
    control: ChainControl,
    model: Optional[LinearRegressionModel] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[Dict[str, np.ndarray], pd.DataFrame]:
    """Hand model + data to the sampler and summarize what comes back."""

    log = logger or logging.getLogger(__name__)
    model = model or LinearRegressionModel()
    data = model.data_mapping(frame)
    t0 = time.time()
    log.info(
        "Regression MCMC start: n=%d chains=%d iter=%d burn_in=%d thin=%d",
        data["n"],
        control.n_chains,
        control.n_iter,
        control.burn_in,
        control.thin,
    )
    samples = sampler.sample(model, data, control)
    missing = [p for p in model.parameters if p not in samples]
    if missing:
        raise ValueError(f"sampler returned no draws for {missing}")
    for name in model.parameters:
        shape = np.shape(samples[name])
        if len(shape) != 2 or shape[0] != control.n_chains:
            raise ValueError(f"samples for {name} must be (chains, draws); got {shape}")
    summary = summarize_posterior({p: samples[p] for p in model.parameters})
    log.info("Regression MCMC end (elapsed=%.2fs)", time.time() - t0)
    return samples, summary
