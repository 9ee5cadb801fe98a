import numpy as np
import pytest

from movement_abc.config import ModelConfig
from movement_abc.inference.abc_mcmc import CHAIN_COLUMNS, chain_matrix, run_abc_mcmc, run_abc_mcmc_chains
from movement_abc.priors.uniform_box_prior import default_movement_prior

SHORT = ModelConfig(steps=40)


def test_chain_stays_in_prior_and_only_moves_on_accept():
    prior = default_movement_prior()
    chain = run_abc_mcmc(
        (1.5, 0.5), prior, epsilon=1.0, n_iter=30, rng=np.random.default_rng(0),
        proposal_sd=(0.3, 0.3), start=(1.0, 0.5), model_cfg=SHORT,
    )
    assert list(chain.columns) == CHAIN_COLUMNS
    assert len(chain) == 30
    params = chain[["movement_length", "error_sd"]].to_numpy()
    assert np.all(params >= 0.0) and np.all(params <= 5.0)

    previous = np.array([1.0, 0.5])
    for row, flag in zip(params, chain["accepted"]):
        if not flag:
            np.testing.assert_array_equal(row, previous)
        previous = row


def test_accepted_moves_lie_within_epsilon():
    chain = run_abc_mcmc(
        (1.5, 0.5), default_movement_prior(), epsilon=0.8, n_iter=25, rng=np.random.default_rng(5),
        proposal_sd=(0.2, 0.2), start=(1.2, 0.4), model_cfg=SHORT,
    )
    moved = chain[chain["accepted"]]
    assert np.all(moved["distance"] < 0.8)


def test_invalid_settings_rejected():
    prior = default_movement_prior()
    rng = np.random.default_rng(0)
    with pytest.raises(ValueError):
        run_abc_mcmc((1.5, 0.5), prior, 0.0, 10, rng, (0.1, 0.1))
    with pytest.raises(ValueError):
        run_abc_mcmc((1.5, 0.5), prior, 0.5, 10, rng, (0.1, -0.1))
    with pytest.raises(ValueError):
        run_abc_mcmc((1.5, 0.5), prior, 0.5, 10, rng, (0.1, 0.1), start=(6.0, 1.0))


def test_multiple_chains_are_stacked():
    chains = run_abc_mcmc_chains(
        (1.5, 0.5), default_movement_prior(), epsilon=1.0, n_iter=12, n_chains=2,
        rng=np.random.default_rng(1), proposal_sd=(0.3, 0.3), model_cfg=SHORT,
    )
    assert sorted(chains["chain"].unique()) == [0, 1]
    assert chain_matrix(chains, "movement_length").shape == (2, 12)
