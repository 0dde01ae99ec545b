import pytest
import numpy as np

from algepi.solver import (
    solve_jump,
    solve_ode,
    solve_sde,
    solve_with_euler,
    solve_with_rk4,
    solve_with_odeint,
    solve_with_ivp,
    SolverType,
)
from numpy.testing import assert_allclose, assert_array_equal


SOLVERS = (
    (solve_with_euler, {"step_size": 0.001}, SolverType.EULER),
    (solve_with_rk4, {"step_size": 0.5}, SolverType.RUNGE_KUTTA),
    (solve_with_odeint, {}, SolverType.ODE_INT),
    (solve_with_ivp, {}, SolverType.SOLVE_IVP),
)


@pytest.mark.parametrize("solver, args, solver_type", SOLVERS)
def test_solve_ode_linear_func(solver, args, solver_type):
    """
    Ensure solver methods can solve a linear function's ODE.

    y_0 = 2 * t
    y_1 = 1 * t

    dy_0/dt = 2
    dy_1/dt = 1
    """

    def ode_func(vals, time):
        return np.array([2, 1])

    values = np.array([0, 0])
    times = np.array([0, 1, 2])
    expected_outputs = np.array(
        [
            # t = 0
            [0, 0],
            # t = 1
            [2, 1],
            # t = 2
            [4, 2],
        ]
    )
    output_arr_1 = solver(ode_func, values, times, solver_args=args)
    assert_allclose(expected_outputs, output_arr_1, rtol=0, atol=1e-9)
    output_arr_2 = solve_ode(solver_type, ode_func, values, times, solver_args=args)
    assert_allclose(expected_outputs, output_arr_2, rtol=0, atol=1e-9)
    assert_array_equal(output_arr_1, output_arr_2)


@pytest.mark.parametrize("solver, args, solver_type", SOLVERS)
def test_solve_ode_exponential_decay(solver, args, solver_type):
    """
    Ensure solver methods can solve exponential decay, as in a recovery-only model.

    y = 100 * exp(-0.25 * t)
    dy/dt = -0.25 * y
    """

    def ode_func(vals, time):
        return -0.25 * vals

    values = np.array([100.0])
    times = np.array([0, 1, 2, 3, 4])
    expected_outputs = 100 * np.exp(-0.25 * times).reshape(-1, 1)
    output_arr = solve_ode(solver_type, ode_func, values, times, solver_args=args)
    assert_allclose(expected_outputs, output_arr, rtol=1e-2)


def test_solve_ode_unknown_solver():
    with pytest.raises(ValueError):
        solve_ode("not-a-solver", lambda vals, time: vals, np.array([1.0]), np.array([0, 1]), {})


def test_solve_ode_step_size_must_divide_times():
    with pytest.raises(AssertionError):
        solve_with_euler(
            lambda vals, time: vals, np.array([1.0]), np.array([0, 1]), {"step_size": 0.3}
        )


def test_solve_sde_without_noise_matches_euler():
    """
    With zero diffusion, Euler-Maruyama is Euler's method.
    """

    def drift_func(vals, time):
        return -0.25 * vals

    def diffusion_func(vals, time):
        return np.zeros((1, 1))

    values = np.array([100.0])
    times = np.array([0, 1, 2])
    rng = np.random.default_rng(1234)
    args = {"step_size": 0.01}
    sde_arr = solve_sde(drift_func, diffusion_func, values, times, args, rng)
    euler_arr = solve_with_euler(drift_func, values, times, args)
    assert_allclose(sde_arr, euler_arr)


def test_solve_sde_same_seed_same_path():
    def drift_func(vals, time):
        return np.array([1.0])

    def diffusion_func(vals, time):
        return np.array([[2.0]])

    values = np.array([10.0])
    times = np.linspace(0, 5, 6)
    args = {"step_size": 0.1}
    arr_1 = solve_sde(drift_func, diffusion_func, values, times, args, np.random.default_rng(1))
    arr_2 = solve_sde(drift_func, diffusion_func, values, times, args, np.random.default_rng(1))
    arr_3 = solve_sde(drift_func, diffusion_func, values, times, args, np.random.default_rng(2))
    assert_array_equal(arr_1, arr_2)
    assert not np.array_equal(arr_1, arr_3)
    assert arr_1[0, 0] == 10


@pytest.mark.parametrize("positive_domain", [True, False])
def test_solve_sde_positive_domain(positive_domain):
    """
    Strong downward drift and noise drive the state below zero, unless clipped.
    """

    def drift_func(vals, time):
        return np.array([-100.0])

    def diffusion_func(vals, time):
        return np.array([[1.0]])

    values = np.array([1.0])
    times = np.array([0, 1])
    args = {"step_size": 0.01, "positive_domain": positive_domain}
    arr = solve_sde(drift_func, diffusion_func, values, times, args, np.random.default_rng(1234))
    if positive_domain:
        assert (arr >= 0).all()
    else:
        assert arr[-1, 0] < 0


def test_solve_jump_pure_death():
    """
    In a pure death process every event removes one individual, until none are left.
    """
    stoichiometry = np.array([[-1]])

    def rate_func(vals, time):
        return 0.5 * vals

    values = np.array([50.0])
    times = np.linspace(0, 100, 101)
    output_arr, trace = solve_jump(
        rate_func, stoichiometry, values, times, {}, np.random.default_rng(1234)
    )
    assert output_arr.shape == (101, 1)
    assert output_arr[0, 0] == 50
    # Population never increases and only moves in whole steps.
    assert (np.diff(output_arr[:, 0]) <= 0).all()
    assert_array_equal(output_arr, np.round(output_arr))
    # Everyone dies, then the simulation stops early.
    assert trace.num_events == 50
    assert output_arr[-1, 0] == 0
    assert_array_equal(trace.transitions, np.zeros(50))
    assert (np.diff(trace.times) > 0).all()
    assert trace.values[-1, 0] == 0


def test_solve_jump_outputs_match_trace():
    """
    The state at each requested time is the state after the last event at or before that time.
    """
    stoichiometry = np.array([[-1, 1], [1, -1]])

    def rate_func(vals, time):
        return np.array([1.0 * vals[0], 0.5 * vals[1]])

    values = np.array([20.0, 0.0])
    times = np.linspace(0, 10, 11)
    output_arr, trace = solve_jump(
        rate_func, stoichiometry, values, times, {}, np.random.default_rng(42)
    )
    for time, output in zip(times, output_arr):
        idx = np.searchsorted(trace.times, time, side="right") - 1
        assert_array_equal(output, trace.values[idx])

    # The total population is conserved.
    assert_array_equal(output_arr.sum(axis=1), np.full(11, 20.0))
    assert trace.times[-1] <= times[-1]


def test_solve_jump_max_events():
    stoichiometry = np.array([[1]])

    def rate_func(vals, time):
        return np.array([100.0])

    with pytest.raises(AssertionError):
        solve_jump(
            rate_func,
            stoichiometry,
            np.array([0.0]),
            np.array([0, 10]),
            {"max_events": 10},
            np.random.default_rng(1234),
        )


class _OvershootRandom:
    """
    A random number generator whose uniform draws land on the top of the unit interval,
    with a fixed waiting time between events.
    """

    def exponential(self, scale):
        return 0.1

    def random(self):
        return 1.0


def test_solve_jump_never_picks_impossible_event():
    stoichiometry = np.array([[-1], [1]])

    def rate_func(vals, time):
        # The second event can never happen.
        return np.array([1.0 * vals[0], 0.0])

    output_arr, trace = solve_jump(
        rate_func, stoichiometry, np.array([3.0]), np.array([0, 1]), {}, _OvershootRandom()
    )
    assert_array_equal(trace.transitions, [0, 0, 0])
    assert_array_equal(output_arr, [[3], [0]])
