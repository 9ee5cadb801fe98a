#!/usr/bin/env python
"""
CLI entrypoint for the movement-model ABC experiment.
"""

from __future__ import annotations

import argparse
import datetime as dt
from pathlib import Path

from movement_abc.simulation.runner import ABCExperimentRunner, RunConfig

DEFAULT_CONFIG = str(Path(__file__).resolve().parent.parent / "configs" / "default_abc.yaml")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fit the movement model with ABC rejection (and ABC-MCMC).")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Experiment config YAML.")
    parser.add_argument(
        "--out",
        default=None,
        help="Output directory (default: results/run_<timestamp>).",
    )
    parser.add_argument("--n_draws", type=int, default=None, help="Override rejection.n_draws.")
    parser.add_argument("--seed", type=int, default=None, help="Override the config seed.")
    parser.add_argument(
        "--log_level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging.level.",
    )
    return parser.parse_args()


def main():
    args = parse_args()
    out_dir = args.out
    if out_dir is None:
        stamp = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
        out_dir = f"results/run_{stamp}"
    Path(out_dir).mkdir(parents=True, exist_ok=True)

    run_cfg = RunConfig(
        cfg_path=args.config,
        out_dir=out_dir,
        n_draws=args.n_draws,
        seed=args.seed,
        log_level=args.log_level,
    )
    ABCExperimentRunner(run_cfg).run()


if __name__ == "__main__":
    main()
