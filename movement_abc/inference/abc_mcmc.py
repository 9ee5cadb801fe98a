"""
ABC-MCMC for the movement model.

Random-walk Metropolis over (movement_length, error_sd) in which the
likelihood is replaced by an indicator: a proposal inside the prior box is
accepted iff the summary of data simulated at the proposal lies within
epsilon of the observed summary. With a uniform prior and a symmetric
Gaussian proposal the remaining Metropolis ratio is 1.
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from movement_abc.config import ModelConfig
from movement_abc.inference.rejection import simulate_summary, summary_distance
from movement_abc.priors.uniform_box_prior import UniformBoxPrior

CHAIN_COLUMNS = ["iteration", "movement_length", "error_sd", "distance", "accepted"]


def _check_settings(prior: UniformBoxPrior, epsilon: float, n_iter: int, proposal_sd: Sequence[float]) -> np.ndarray:
    if not np.isfinite(epsilon) or epsilon <= 0.0:
        raise ValueError("epsilon must be positive")
    if n_iter <= 0:
        raise ValueError("n_iter must be positive")
    step = np.asarray(proposal_sd, dtype=np.float64)
    if step.shape != (len(prior.names),):
        raise ValueError("proposal_sd needs one entry per prior parameter")
    if np.any(step <= 0.0):
        raise ValueError("proposal_sd entries must be positive")
    return step


def run_abc_mcmc(
    observed: Sequence[float],
    prior: UniformBoxPrior,
    epsilon: float,
    n_iter: int,
    rng: np.random.Generator,
    proposal_sd: Sequence[float],
    start: Optional[Sequence[float]] = None,
    model_cfg: Optional[ModelConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Run one ABC-MCMC chain of `n_iter` iterations (the start is not recorded)."""

    log = logger or logging.getLogger(__name__)
    step = _check_settings(prior, epsilon, n_iter, proposal_sd)
    model_cfg = model_cfg or ModelConfig()
    obs = np.asarray(observed, dtype=np.float64)

    if start is None:
        theta = prior.sample(rng).as_array()
    else:
        theta = np.asarray(start, dtype=np.float64)
        if not prior.contains(theta):
            raise ValueError("start must lie inside the prior box")
    distance = summary_distance(simulate_summary(prior.candidate(theta), rng, model_cfg), obs)

    records: List[dict] = []
    n_accepted = 0
    for it in range(int(n_iter)):
        proposal = theta + rng.normal(0.0, step)
        moved = False
        if prior.contains(proposal):
            prop_distance = summary_distance(simulate_summary(prior.candidate(proposal), rng, model_cfg), obs)
            if prop_distance < epsilon:
                theta, distance = proposal, prop_distance
                moved = True
                n_accepted += 1
        records.append(
            {
                "iteration": it,
                "movement_length": float(theta[0]),
                "error_sd": float(theta[1]),
                "distance": distance,
                "accepted": moved,
            }
        )

    log.info(
        "ABC-MCMC chain done: n_iter=%d epsilon=%.3f acceptance=%.3f",
        n_iter,
        epsilon,
        n_accepted / float(n_iter),
    )
    return pd.DataFrame.from_records(records, columns=CHAIN_COLUMNS)


def run_abc_mcmc_chains(
    observed: Sequence[float],
    prior: UniformBoxPrior,
    epsilon: float,
    n_iter: int,
    n_chains: int,
    rng: np.random.Generator,
    proposal_sd: Sequence[float],
    starts: Optional[Sequence[Sequence[float]]] = None,
    model_cfg: Optional[ModelConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Independent chains on spawned generators, stacked with a `chain` column."""

    log = logger or logging.getLogger(__name__)
    if n_chains <= 0:
        raise ValueError("n_chains must be positive")
    if starts is not None and len(starts) != n_chains:
        raise ValueError("starts needs one entry per chain")

    t0 = time.time()
    frames = []
    for chain, child in enumerate(rng.spawn(int(n_chains))):
        start = None if starts is None else starts[chain]
        df = run_abc_mcmc(observed, prior, epsilon, n_iter, child, proposal_sd, start, model_cfg, log)
        df.insert(0, "chain", chain)
        frames.append(df)
    log.info("ABC-MCMC finished: %d chains (elapsed=%.2fs)", n_chains, time.time() - t0)
    return pd.concat(frames, ignore_index=True)


def chain_matrix(chains: pd.DataFrame, column: str) -> np.ndarray:
    """(chains, iterations) matrix of one column, for the MCMC diagnostics."""

    return np.vstack([grp[column].to_numpy(dtype=np.float64) for _, grp in chains.groupby("chain", sort=True)])
