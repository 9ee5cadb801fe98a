import numpy as np
import pytest

from movement_abc.simulation.movement_model import Trajectory, simulate_trajectory


def test_trajectory_has_steps_plus_one_points():
    traj = simulate_trajectory(2.0, np.random.default_rng(1), steps=200)
    assert traj.x.shape == (201,)
    assert traj.y.shape == (201,)
    assert traj.steps == 200
    assert traj.x[0] == 0.0 and traj.y[0] == 0.0


def test_first_step_follows_heading_and_length():
    rng = np.random.default_rng(7)
    turns = rng.normal(0.0, 1.0, size=3)
    lengths = rng.exponential(2.0, size=3)

    traj = simulate_trajectory(2.0, np.random.default_rng(7), steps=3)
    assert traj.x[1] == pytest.approx(np.sin(turns[0]) * lengths[0])
    assert traj.y[1] == pytest.approx(np.cos(turns[0]) * lengths[0])
    assert traj.heading[-1] == pytest.approx(turns.sum())


def test_same_seed_same_trajectory():
    a = simulate_trajectory(2.0, np.random.default_rng(5))
    b = simulate_trajectory(2.0, np.random.default_rng(5))
    np.testing.assert_array_equal(a.x, b.x)
    np.testing.assert_array_equal(a.y, b.y)


def test_end_position_within_walk_bound():
    # 200 exponential steps of mean 2: path length ~ 400 with sd ~ 28.
    start = (5.0, -3.0, 0.0)
    traj = simulate_trajectory(2.0, np.random.default_rng(123), start=start, steps=200)
    path = traj.path_length()
    assert 300.0 < path < 500.0

    # Turning noise decorrelates headings, so the net displacement
    # (rms ~ 80 here) stays well below the straight-line path length.
    end_x, end_y = traj.end_position()
    assert np.hypot(end_x - start[0], end_y - start[1]) < 0.75 * path

    displacements = []
    for seed in range(20):
        t = simulate_trajectory(2.0, np.random.default_rng(seed), steps=200)
        displacements.append(np.hypot(*t.end_position()))
    assert np.mean(displacements) < 0.5 * 200 * 2.0


def test_start_state_is_respected():
    traj = simulate_trajectory(1.0, np.random.default_rng(0), start=(3.0, -1.0, 0.5), steps=10)
    assert (traj.x[0], traj.y[0]) == (3.0, -1.0)
    assert traj.heading[0] == 0.5


def test_zero_steps_gives_single_point():
    traj = simulate_trajectory(1.0, np.random.default_rng(0), steps=0)
    assert traj.x.shape == (1,)


def test_trajectory_is_read_only():
    traj = simulate_trajectory(1.0, np.random.default_rng(0), steps=5)
    with pytest.raises(ValueError):
        traj.x[0] = 10.0


def test_mismatched_coordinates_rejected():
    with pytest.raises(ValueError):
        Trajectory(x=[0.0, 1.0], y=[0.0], heading=[0.0, 0.0])
