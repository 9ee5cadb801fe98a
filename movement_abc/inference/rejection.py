"""
ABC rejection sampling for the movement model.

For each of N draws: sample (movement_length, error_sd) from the uniform
prior box, simulate a trajectory, observe it, summarize the observation and
record the Euclidean distance to the observed summary. The full result
table is materialized; acceptance by epsilon happens afterwards
(see inference.acceptance).

Every draw gets its own generator spawned from the caller's generator, so a
row depends only on (seed, draw index). Rows can be computed in any order
and merged by index into the same table.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from movement_abc.config import ModelConfig
from movement_abc.invariants import require_invariant
from movement_abc.priors.uniform_box_prior import CandidateParameters, UniformBoxPrior
from movement_abc.simulation.movement_model import simulate_trajectory
from movement_abc.simulation.observation_model import observe
from movement_abc.simulation.summary_statistics import N_SUMMARIES, summary_statistics

RESULT_COLUMNS = ["movement_length", "error_sd", "distance"]


def summary_distance(simulated: Sequence[float], observed: Sequence[float]) -> float:
    """Euclidean distance between summary vectors; NaN if either is non-finite."""

    sim = np.asarray(simulated, dtype=np.float64)
    obs = np.asarray(observed, dtype=np.float64)
    if sim.shape != obs.shape:
        raise ValueError("summary vectors must have the same shape")
    if not (np.all(np.isfinite(sim)) and np.all(np.isfinite(obs))):
        return float("nan")
    return float(np.sqrt(np.sum((sim - obs) ** 2)))


def simulate_summary(
    params: CandidateParameters,
    rng: np.random.Generator,
    model_cfg: Optional[ModelConfig] = None,
) -> np.ndarray:
    """Process model -> observation model -> summary statistics for one candidate."""

    model_cfg = model_cfg or ModelConfig()
    trajectory = simulate_trajectory(
        params["movement_length"],
        rng,
        start=model_cfg.start,
        steps=model_cfg.steps,
        turning_width=model_cfg.turning_width,
    )
    observation = observe(trajectory, params["error_sd"], rng)
    return summary_statistics(observation)


def run_draw(
    draw: int,
    rng: np.random.Generator,
    prior: UniformBoxPrior,
    observed: Sequence[float],
    model_cfg: Optional[ModelConfig] = None,
) -> Dict[str, float]:
    params = prior.sample(rng)
    simulated = simulate_summary(params, rng, model_cfg)
    row: Dict[str, float] = {"draw": int(draw)}
    row.update(params.as_dict())
    row["distance"] = summary_distance(simulated, observed)
    return row


def validate_result_table(table: pd.DataFrame, n_draws: int) -> None:
    require_invariant(
        len(table) == n_draws,
        "RESULT_ROWS",
        "result table must hold one row per draw",
        data={"rows": len(table), "n_draws": n_draws},
    )
    require_invariant(
        bool(table.index.is_unique) and list(table.index) == list(range(n_draws)),
        "RESULT_INDEX",
        "result table must be indexed by draw 0..N-1",
        data={"n_draws": n_draws},
    )
    distances = table["distance"].to_numpy(dtype=np.float64)
    finite = distances[np.isfinite(distances)]
    require_invariant(
        bool(np.all(finite >= 0.0)),
        "RESULT_DISTANCE_SIGN",
        "distances must be non-negative",
        data={"min_distance": float(finite.min()) if finite.size else None},
    )


def assemble_result_table(rows: Iterable[Dict[str, float]], n_draws: int) -> pd.DataFrame:
    """Merge per-draw rows (any arrival order) into the result table."""

    table = pd.DataFrame.from_records(list(rows))
    if table.empty:
        table = pd.DataFrame(columns=["draw"] + RESULT_COLUMNS)
    table = table.sort_values("draw", kind="mergesort").set_index("draw")
    table.index = table.index.astype(np.int64)
    table = table[RESULT_COLUMNS].astype(np.float64)
    validate_result_table(table, n_draws)
    return table


def _validate_inputs(observed: Sequence[float], prior: UniformBoxPrior, n_draws: int) -> np.ndarray:
    if int(n_draws) != n_draws or n_draws <= 0:
        raise ValueError("n_draws must be a positive integer")
    if not isinstance(prior, UniformBoxPrior):
        raise ValueError("prior must be a UniformBoxPrior")
    if list(prior.names) != RESULT_COLUMNS[:2]:
        raise ValueError(f"prior must define {RESULT_COLUMNS[:2]}")
    obs = np.asarray(observed, dtype=np.float64)
    if obs.shape != (N_SUMMARIES,):
        raise ValueError(f"observed summary must have {N_SUMMARIES} values")
    return obs


def run_rejection_abc(
    observed: Sequence[float],
    prior: UniformBoxPrior,
    n_draws: int,
    rng: np.random.Generator,
    model_cfg: Optional[ModelConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Run N independent prior draws and return the full (params, distance) table."""

    log = logger or logging.getLogger(__name__)
    obs = _validate_inputs(observed, prior, n_draws)
    model_cfg = model_cfg or ModelConfig()

    t0 = time.time()
    log.info(
        "ABC rejection start: n_draws=%d prior=%s observed=(%.4f, %.4f) steps=%d",
        n_draws,
        prior.to_dict(),
        obs[0],
        obs[1],
        model_cfg.steps,
    )
    children = rng.spawn(int(n_draws))
    rows: List[Dict[str, float]] = []
    for draw, child in enumerate(children):
        row = run_draw(draw, child, prior, obs, model_cfg)
        rows.append(row)
        log.debug(
            "draw=%d movement_length=%.4f error_sd=%.4f distance=%.4f",
            draw,
            row["movement_length"],
            row["error_sd"],
            row["distance"],
        )
        if (draw + 1) % 1000 == 0:
            log.info("ABC rejection progress: %d/%d draws", draw + 1, n_draws)

    table = assemble_result_table(rows, int(n_draws))
    n_nonfinite = int((~np.isfinite(table["distance"].to_numpy())).sum())
    if n_nonfinite:
        log.warning("ABC rejection: %d draws produced non-finite distances", n_nonfinite)
    log.info(
        "ABC rejection end: rows=%d min_distance=%.4f elapsed=%.2fs",
        len(table),
        float(np.nanmin(table["distance"])) if n_nonfinite < len(table) else float("nan"),
        time.time() - t0,
    )
    return table
