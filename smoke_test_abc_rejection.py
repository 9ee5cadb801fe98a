"""
Smoke test for the ABC rejection experiment.

Validates artifact creation, result-table shape, non-negative distances and
determinism across repeated runs with identical seeds.
"""

from __future__ import annotations

import json
import os
import shutil
import sys

import numpy as np
import pandas as pd

# Allow running from repo root without installation.
REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from movement_abc.simulation.runner import ABCExperimentRunner, RunConfig

CONFIG = os.path.join(REPO_ROOT, "movement_abc", "configs", "default_abc.yaml")
N_DRAWS = 200


def run_once(out_dir: str) -> dict:
    if os.path.exists(out_dir):
        shutil.rmtree(out_dir)
    run_cfg = RunConfig(cfg_path=CONFIG, out_dir=out_dir, n_draws=N_DRAWS, seed=2024, log_level="WARNING")
    return ABCExperimentRunner(run_cfg).run()


def main() -> None:
    out_a = os.path.join("results", "smoke_abc_a")
    out_b = os.path.join("results", "smoke_abc_b")
    run_once(out_a)

    for name in ["manifest.json", "observed.csv", "abc_rejection.csv", "acceptance_summary.csv"]:
        path = os.path.join(out_a, name)
        assert os.path.exists(path), f"Missing artifact: {path}"

    table = pd.read_csv(os.path.join(out_a, "abc_rejection.csv"))
    assert len(table) == N_DRAWS, f"Expected {N_DRAWS} rows, got {len(table)}"
    d = table["distance"].to_numpy()
    assert np.all((d >= 0.0) | np.isnan(d)), "Negative distance in result table"

    acc = pd.read_csv(os.path.join(out_a, "acceptance_summary.csv"))
    assert np.all(np.diff(acc["n_accepted"].to_numpy()) >= 0), "Acceptance counts not monotone in epsilon"

    # Determinism check: rerun and compare.
    run_once(out_b)
    for name in ["abc_rejection.csv", "acceptance_summary.csv", "observed.csv"]:
        with open(os.path.join(out_a, name), encoding="utf-8") as fa, open(os.path.join(out_b, name), encoding="utf-8") as fb:
            assert fa.read() == fb.read(), f"Non-deterministic artifact: {name}"
    with open(os.path.join(out_a, "manifest.json"), encoding="utf-8") as f:
        manifest = json.load(f)
    print("Smoke test passed:", manifest["acceptance"])


if __name__ == "__main__":
    main()
