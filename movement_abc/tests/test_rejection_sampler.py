import numpy as np
import pandas as pd
import pytest

from movement_abc.config import ModelConfig
from movement_abc.inference.rejection import (
    RESULT_COLUMNS,
    assemble_result_table,
    run_draw,
    run_rejection_abc,
    summary_distance,
)
from movement_abc.invariants import InvariantViolation
from movement_abc.priors.uniform_box_prior import UniformBoxPrior, default_movement_prior

SHORT = ModelConfig(steps=50)
OBSERVED = (1.5, 0.5)


def test_table_has_one_row_per_draw():
    for n in (1, 7, 25):
        table = run_rejection_abc(OBSERVED, default_movement_prior(), n, np.random.default_rng(n), model_cfg=SHORT)
        assert len(table) == n
        assert list(table.columns) == RESULT_COLUMNS
        assert list(table.index) == list(range(n))


def test_distances_non_negative_or_nan():
    table = run_rejection_abc(OBSERVED, default_movement_prior(), 40, np.random.default_rng(2), model_cfg=SHORT)
    d = table["distance"].to_numpy()
    assert np.all((d >= 0.0) | np.isnan(d))


def test_same_seed_same_table():
    prior = default_movement_prior()
    a = run_rejection_abc(OBSERVED, prior, 15, np.random.default_rng(42), model_cfg=SHORT)
    b = run_rejection_abc(OBSERVED, prior, 15, np.random.default_rng(42), model_cfg=SHORT)
    pd.testing.assert_frame_equal(a, b)


def test_rows_merge_independent_of_order():
    prior = default_movement_prior()
    table = run_rejection_abc(OBSERVED, prior, 10, np.random.default_rng(3), model_cfg=SHORT)

    children = np.random.default_rng(3).spawn(10)
    rows = [run_draw(i, child, prior, OBSERVED, SHORT) for i, child in enumerate(children)]
    merged = assemble_result_table(reversed(rows), 10)
    pd.testing.assert_frame_equal(merged, table)


def test_invalid_draw_count_rejected():
    for n in (0, -3):
        with pytest.raises(ValueError):
            run_rejection_abc(OBSERVED, default_movement_prior(), n, np.random.default_rng(0))


def test_observed_summary_must_have_two_values():
    with pytest.raises(ValueError):
        run_rejection_abc((1.0, 2.0, 3.0), default_movement_prior(), 5, np.random.default_rng(0))


def test_degenerate_draws_propagate_nan():
    # Start at x=0.8 and barely move without noise: every x reading drops out.
    prior = UniformBoxPrior.from_mapping({"movement_length": [1e-9, 1e-9], "error_sd": [0.0, 0.0]})
    cfg = ModelConfig(steps=20, start=(0.8, 0.0, 0.0))
    table = run_rejection_abc(OBSERVED, prior, 3, np.random.default_rng(0), model_cfg=cfg)
    assert len(table) == 3
    assert table["distance"].isna().all()


def test_summary_distance():
    assert summary_distance([0.0, 0.0], [3.0, 4.0]) == 5.0
    assert np.isnan(summary_distance([np.nan, 1.0], [0.0, 0.0]))
    with pytest.raises(ValueError):
        summary_distance([0.0], [0.0, 1.0])


def test_missing_row_breaks_invariant():
    prior = default_movement_prior()
    children = np.random.default_rng(0).spawn(3)
    rows = [run_draw(i, child, prior, OBSERVED, SHORT) for i, child in enumerate(children)]
    with pytest.raises(InvariantViolation):
        assemble_result_table(rows[:2], 3)


def test_sanity_scenario_has_close_draw():
    table = run_rejection_abc((1.5, 0.5), default_movement_prior(5.0), 100, np.random.default_rng(123))
    assert len(table) == 100
    assert (table["distance"] < 5.0).sum() >= 1
