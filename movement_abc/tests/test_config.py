from pathlib import Path

import pytest
import yaml

from movement_abc.config import ABCConfig, load_abc_config

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "configs" / "default_abc.yaml"


def test_default_config_matches_exercise():
    cfg = load_abc_config(str(DEFAULT_CONFIG))
    assert cfg.seed == 123
    assert cfg.model.steps == 200
    assert cfg.truth.movement_length == 2.0
    assert cfg.rejection.n_draws == 10000
    assert cfg.rejection.epsilons == (1.0, 0.2, 0.1)
    assert cfg.build_prior().to_dict() == {"movement_length": (0.0, 5.0), "error_sd": (0.0, 5.0)}


def test_empty_config_uses_defaults():
    cfg = ABCConfig.from_dict({})
    assert cfg.observed_statistics is None
    assert cfg.log_level == "INFO"
    assert not cfg.abc_mcmc.enabled


def test_bad_prior_fails_at_load(tmp_path):
    path = tmp_path / "bad.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"prior": {"movement_length": [5.0, 0.0], "error_sd": [0.0, 5.0]}}, f)
    with pytest.raises(ValueError):
        load_abc_config(str(path))


@pytest.mark.parametrize(
    "raw",
    [
        {"rejection": {"n_draws": 0}},
        {"observed_statistics": [1.0, 2.0, 3.0]},
        {"prior": {"error_sd": [0.0, 5.0], "movement_length": [0.0, 5.0]}},
        {"prior": {"movement_length": [0.0, 5.0, 9.0], "error_sd": [0.0, 5.0]}},
        {"prior": {"movement_length": 5.0, "error_sd": [0.0, 5.0]}},
        {"model": {"steps": 1}},
        {"abc_mcmc": {"enabled": True, "epsilon": -1.0}},
        {"abc_mcmc": {"enabled": True, "n_chains": 0}},
        {"abc_mcmc": {"enabled": True, "proposal_sd": [0.2, 0.0]}},
        {"abc_mcmc": {"enabled": True, "proposal_sd": [0.2]}},
        {"regression": {"enabled": True, "n_iter": 10, "burn_in": 100}},
        {"regression": {"enabled": True, "thin": 0}},
        {"regression": {"enabled": True, "n": 2}},
        {"regression": {"enabled": True, "n_chains": 0}},
        {"truth": [2.0, 1.0]},
        {"logging": "DEBUG"},
    ],
)
def test_invalid_settings_rejected(raw):
    with pytest.raises(ValueError):
        ABCConfig.from_dict(raw)


@pytest.mark.parametrize("section", ["model", "truth", "prior", "rejection", "abc_mcmc", "regression", "logging"])
def test_null_section_uses_defaults(section):
    cfg = ABCConfig.from_dict({section: None})
    assert cfg.seed == 123
    assert cfg.truth.movement_length == 2.0
    assert cfg.rejection.n_draws == 10000
    assert cfg.log_level == "INFO"
    assert cfg.build_prior().to_dict() == {"movement_length": (0.0, 5.0), "error_sd": (0.0, 5.0)}


def test_yaml_section_with_commented_keys_loads(tmp_path):
    path = tmp_path / "sparse.yaml"
    path.write_text("seed: 9\nabc_mcmc:\n  # epsilon: 0.5\nregression:\nlogging:\n", encoding="utf-8")
    cfg = load_abc_config(str(path))
    assert cfg.seed == 9
    assert not cfg.abc_mcmc.enabled
    assert not cfg.regression.enabled


def test_regression_chain_control_from_config():
    cfg = ABCConfig.from_dict({"regression": {"n_chains": 2, "n_iter": 300, "burn_in": 100, "thin": 2}})
    control = cfg.regression.chain_control()
    assert control.n_chains == 2
    assert control.kept_draws == 100
