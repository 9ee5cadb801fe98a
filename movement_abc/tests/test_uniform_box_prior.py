import math

import numpy as np
import pytest

from movement_abc.priors.uniform_box_prior import ParameterBounds, UniformBoxPrior, default_movement_prior


def test_lower_above_upper_rejected():
    with pytest.raises(ValueError):
        ParameterBounds("movement_length", 5.0, 0.0)


def test_non_finite_bounds_rejected():
    with pytest.raises(ValueError):
        ParameterBounds("error_sd", 0.0, math.inf)


def test_duplicate_names_rejected():
    with pytest.raises(ValueError):
        UniformBoxPrior([ParameterBounds("a", 0, 1), ParameterBounds("a", 0, 2)])


def test_samples_stay_in_box():
    prior = default_movement_prior()
    rng = np.random.default_rng(0)
    draws = np.array([prior.sample(rng).as_array() for _ in range(500)])
    assert draws.shape == (500, 2)
    assert np.all(draws >= 0.0) and np.all(draws <= 5.0)
    assert prior.names == ("movement_length", "error_sd")


def test_degenerate_bounds_return_fixed_value():
    prior = UniformBoxPrior.from_mapping({"movement_length": [2.0, 2.0], "error_sd": [1.0, 1.0]})
    cand = prior.sample(np.random.default_rng(1))
    assert cand.as_dict() == {"movement_length": 2.0, "error_sd": 1.0}


def test_contains():
    prior = default_movement_prior()
    assert prior.contains([0.0, 5.0])
    assert not prior.contains([-0.1, 1.0])
    assert not prior.contains([1.0, 5.1])
