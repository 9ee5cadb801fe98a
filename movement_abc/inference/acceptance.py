"""
Post-hoc acceptance of ABC rejection draws.

Filtering is applied to a finished result table, so several epsilon values
can be compared on the same draws. A draw is accepted when its distance is
strictly below epsilon; NaN distances fail the comparison and are never
accepted.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

PARAMETER_COLUMNS = ["movement_length", "error_sd"]


def accepted(table: pd.DataFrame, epsilon: float) -> pd.DataFrame:
    return table[table["distance"] < epsilon]


def acceptance_counts(table: pd.DataFrame, epsilons: Iterable[float]) -> pd.Series:
    eps = sorted(float(e) for e in epsilons)
    return pd.Series([int((table["distance"] < e).sum()) for e in eps], index=pd.Index(eps, name="epsilon"))


def acceptance_summary(table: pd.DataFrame, epsilons: Iterable[float]) -> pd.DataFrame:
    """Accepted count, rate and posterior moments per epsilon (ascending)."""

    records = []
    n_total = len(table)
    for eps in sorted(float(e) for e in epsilons):
        acc = accepted(table, eps)
        rec = {
            "epsilon": eps,
            "n_accepted": int(len(acc)),
            "acceptance_rate": len(acc) / n_total if n_total else float("nan"),
        }
        for col in PARAMETER_COLUMNS:
            values = acc[col].to_numpy(dtype=np.float64)
            rec[f"{col}_mean"] = float(values.mean()) if values.size else float("nan")
            rec[f"{col}_sd"] = float(values.std(ddof=1)) if values.size > 1 else float("nan")
        records.append(rec)
    return pd.DataFrame.from_records(records)


def closest_draws(table: pd.DataFrame, k: int) -> pd.DataFrame:
    """The k draws with the smallest finite distance."""

    if k <= 0:
        raise ValueError("k must be positive")
    finite = table[np.isfinite(table["distance"])]
    return finite.nsmallest(k, "distance")
