"""
Split R-hat and effective sample size for (chains, draws) sample matrices.

Returns NaN when a diagnostic is undefined (too few draws) instead of
raising, so short smoke runs still produce a diagnostics table.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


def _as_matrix(samples) -> np.ndarray:
    arr = np.asarray(samples, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr[np.newaxis, :]
    if arr.ndim != 2:
        raise ValueError("samples must be a (chains, draws) matrix")
    return arr


def split_chains(samples) -> np.ndarray:
    """Halve every chain; an odd trailing draw is dropped."""

    arr = _as_matrix(samples)
    half = arr.shape[1] // 2
    if half < 2:
        return np.empty((0, 0))
    return np.vstack([arr[:, :half], arr[:, half : 2 * half]])


def _between_within(arr: np.ndarray):
    n = arr.shape[1]
    within = float(arr.var(axis=1, ddof=1).mean())
    between = float(n * arr.mean(axis=1).var(ddof=1)) if arr.shape[0] >= 2 else 0.0
    var_hat = (n - 1) / n * within + between / n
    return within, var_hat


def split_rhat(samples) -> float:
    split = split_chains(samples)
    if split.shape[0] < 2:
        return float("nan")
    within, var_hat = _between_within(split)
    if not np.isfinite(within) or within <= 0.0:
        # Constant chains: R-hat carries no information, report 1.0.
        return 1.0
    if not np.isfinite(var_hat) or var_hat <= 0.0:
        return float("nan")
    return float(np.sqrt(var_hat / within))


def effective_sample_size(samples) -> float:
    """Multi-chain ESS with autocorrelations summed until the first negative lag."""

    arr = _as_matrix(samples)
    m, n = arr.shape
    if n < 3:
        return float("nan")
    within, var_hat = _between_within(arr)
    if not np.isfinite(within) or within <= 0.0:
        return float(m * n)
    if not np.isfinite(var_hat) or var_hat <= 0.0:
        return float("nan")

    centered = arr - arr.mean(axis=1, keepdims=True)
    rho_sum = 0.0
    for lag in range(1, min(200, n - 1) + 1):
        acov = float(np.mean(np.sum(centered[:, :-lag] * centered[:, lag:], axis=1) / n))
        rho = 1.0 - (within - acov) / var_hat
        if rho < 0.0:
            break
        rho_sum += rho
    return float(max(1.0, m * n / (1.0 + 2.0 * rho_sum)))


def chain_diagnostics(name: str, samples) -> pd.DataFrame:
    arr = _as_matrix(samples)
    return pd.DataFrame(
        {
            "parameter": [name],
            "chains": [arr.shape[0]],
            "draws": [arr.shape[1]],
            "rhat": [split_rhat(arr)],
            "ess": [effective_sample_size(arr)],
        }
    )
