"""
End-to-end driver for the movement-model ABC experiment.

Pipeline:
1) Simulate the "real" track from the true parameters and observe it
   (or take user-supplied observed summary statistics).
2) ABC rejection: N prior draws -> result table (params, distance).
3) Post-hoc acceptance for every configured epsilon.
4) Optional ABC-MCMC chains started from the closest rejection draws.
5) Optional companion Bayesian linear regression via MCMC.
6) Emit CSV artifacts and manifest.json.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from movement_abc.config import RejectionConfig, load_abc_config
from movement_abc.diagnostics.mcmc_diagnostics import chain_diagnostics
from movement_abc.inference.abc_mcmc import chain_matrix, run_abc_mcmc_chains
from movement_abc.inference.acceptance import acceptance_summary, closest_draws
from movement_abc.inference.rejection import run_rejection_abc
from movement_abc.mcmc.regression import MetropolisSampler, fit_linear_regression, simulate_regression_data
from movement_abc.simulation.movement_model import simulate_trajectory
from movement_abc.simulation.observation_model import observe
from movement_abc.simulation.summary_statistics import summary_statistics


@dataclass
class RunConfig:
    cfg_path: str
    out_dir: str
    n_draws: Optional[int] = None
    seed: Optional[int] = None
    log_level: Optional[str] = None


class ABCExperimentRunner:
    def __init__(self, run_cfg: RunConfig):
        self.run_cfg = run_cfg
        cfg = load_abc_config(run_cfg.cfg_path)
        if run_cfg.n_draws is not None:
            cfg.rejection = RejectionConfig(n_draws=int(run_cfg.n_draws), epsilons=cfg.rejection.epsilons)
        if run_cfg.seed is not None:
            cfg.seed = int(run_cfg.seed)
        if run_cfg.log_level is not None:
            cfg.log_level = str(run_cfg.log_level).upper()
        self.cfg = cfg

        self.log = logging.getLogger("movement_abc")
        self.log.setLevel(getattr(logging, self.cfg.log_level, logging.INFO))
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        if not self.log.handlers:
            self.log.addHandler(ch)

        Path(run_cfg.out_dir).mkdir(parents=True, exist_ok=True)

    def _observed_statistics(self, rng: np.random.Generator) -> Dict[str, object]:
        if self.cfg.observed_statistics is not None:
            stats = np.asarray(self.cfg.observed_statistics, dtype=np.float64)
            self.log.info("Using supplied observed statistics: (%.4f, %.4f)", stats[0], stats[1])
            return {"source": "supplied", "statistics": stats, "frame": None}

        truth = self.cfg.truth
        model = self.cfg.model
        trajectory = simulate_trajectory(
            truth.movement_length,
            rng,
            start=model.start,
            steps=model.steps,
            turning_width=model.turning_width,
        )
        observation = observe(trajectory, truth.error_sd, rng)
        stats = summary_statistics(observation)
        self.log.info(
            "Generated observed data: movement_length=%.2f error_sd=%.2f missing_x=%d/%d summary=(%.4f, %.4f)",
            truth.movement_length,
            truth.error_sd,
            observation.n_missing_x,
            len(observation.x_obs),
            stats[0],
            stats[1],
        )
        if not np.all(np.isfinite(stats)):
            raise ValueError("observed summary statistics are not finite; check the truth settings")
        return {"source": "generated", "statistics": stats, "frame": observation.to_frame()}

    def _run_abc_mcmc(self, table: pd.DataFrame, observed: np.ndarray, prior, rng, out_dir: Path) -> List[str]:
        mcmc_cfg = self.cfg.abc_mcmc
        starts = None
        best = closest_draws(table, mcmc_cfg.n_chains)
        if len(best) == mcmc_cfg.n_chains:
            starts = best[["movement_length", "error_sd"]].to_numpy().tolist()
        chains = run_abc_mcmc_chains(
            observed,
            prior,
            epsilon=mcmc_cfg.epsilon,
            n_iter=mcmc_cfg.n_iter,
            n_chains=mcmc_cfg.n_chains,
            rng=rng,
            proposal_sd=mcmc_cfg.proposal_sd,
            starts=starts,
            model_cfg=self.cfg.model,
            logger=self.log,
        )
        chains.to_csv(out_dir / "abc_mcmc_chains.csv", index=False)
        diag = pd.concat(
            [chain_diagnostics(col, chain_matrix(chains, col)) for col in ["movement_length", "error_sd"]],
            ignore_index=True,
        )
        diag.to_csv(out_dir / "abc_mcmc_diagnostics.csv", index=False)
        return ["abc_mcmc_chains.csv", "abc_mcmc_diagnostics.csv"]

    def _run_regression(self, rng: np.random.Generator, out_dir: Path) -> List[str]:
        reg = self.cfg.regression
        data_rng, sampler_rng = rng.spawn(2)
        frame = simulate_regression_data(reg.n, reg.intercept, reg.slope, reg.sigma, data_rng)
        control = reg.chain_control()
        sampler = MetropolisSampler(proposal_scale=reg.proposal_scale, rng=sampler_rng, logger=self.log)
        _, summary = fit_linear_regression(frame, sampler, control, logger=self.log)
        frame.to_csv(out_dir / "regression_data.csv", index=False)
        summary.to_csv(out_dir / "regression_posterior.csv", index=False)
        for row in summary.to_dict("records"):
            self.log.info(
                "%-9s mean=%.3f sd=%.3f 95%% CI=[%.3f, %.3f] rhat=%.3f",
                row["parameter"],
                row["mean"],
                row["sd"],
                row["q2.5"],
                row["q97.5"],
                row["rhat"],
            )
        return ["regression_data.csv", "regression_posterior.csv"]

    def run(self) -> Dict[str, object]:
        run_start = time.time()
        out_dir = Path(self.run_cfg.out_dir)
        self.log.info("ABC experiment start (config=%s, out_dir=%s, seed=%d)", self.run_cfg.cfg_path, out_dir, self.cfg.seed)

        prior = self.cfg.build_prior()
        obs_rng, abc_rng, mcmc_rng, reg_rng = np.random.default_rng(self.cfg.seed).spawn(4)
        outputs: List[str] = []

        # 1) Observed data
        observed = self._observed_statistics(obs_rng)
        if observed["frame"] is not None:
            observed["frame"].to_csv(out_dir / "observed.csv", index=False)
            outputs.append("observed.csv")
        stats = observed["statistics"]

        # 2) Rejection
        table = run_rejection_abc(
            stats,
            prior,
            self.cfg.rejection.n_draws,
            abc_rng,
            model_cfg=self.cfg.model,
            logger=self.log,
        )
        table.to_csv(out_dir / "abc_rejection.csv", index=True)
        outputs.append("abc_rejection.csv")

        # 3) Acceptance
        acc = acceptance_summary(table, self.cfg.rejection.epsilons)
        acc.to_csv(out_dir / "acceptance_summary.csv", index=False)
        outputs.append("acceptance_summary.csv")
        for row in acc.itertuples(index=False):
            self.log.info(
                "epsilon=%.3f accepted=%d (rate=%.4f) movement_length_mean=%.3f error_sd_mean=%.3f",
                row.epsilon,
                row.n_accepted,
                row.acceptance_rate,
                row.movement_length_mean,
                row.error_sd_mean,
            )

        # 4) ABC-MCMC
        if self.cfg.abc_mcmc.enabled:
            outputs.extend(self._run_abc_mcmc(table, stats, prior, mcmc_rng, out_dir))
        else:
            self.log.info("ABC-MCMC skipped (abc_mcmc.enabled=False)")

        # 5) Regression
        if self.cfg.regression.enabled:
            outputs.extend(self._run_regression(reg_rng, out_dir))
        else:
            self.log.info("Regression MCMC skipped (regression.enabled=False)")

        manifest = {
            "config": self.run_cfg.cfg_path,
            "seed": self.cfg.seed,
            "observed_source": observed["source"],
            "observed_statistics": [float(v) for v in stats],
            "truth": {
                "movement_length": self.cfg.truth.movement_length,
                "error_sd": self.cfg.truth.error_sd,
            },
            "prior": {k: list(v) for k, v in prior.to_dict().items()},
            "n_draws": self.cfg.rejection.n_draws,
            "acceptance": {str(r.epsilon): int(r.n_accepted) for r in acc.itertuples(index=False)},
            "outputs": outputs,
            "elapsed_seconds": round(time.time() - run_start, 3),
        }
        with open(out_dir / "manifest.json", "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2)

        self.log.info("ABC experiment complete. Outputs stored under %s (total_elapsed=%.2fs)", out_dir, time.time() - run_start)
        return manifest
