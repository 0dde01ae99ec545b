"""
Tools for simulating Petri net dynamics as ODEs, SDEs and jump processes.
"""
from typing import Callable, List, Tuple

import numpy as np
from scipy.integrate import odeint, solve_ivp
from scipy.interpolate import interp1d


OdeFunction = Callable[[np.ndarray, float], np.ndarray]
DiffusionFunction = Callable[[np.ndarray, float], np.ndarray]
RateFunction = Callable[[np.ndarray, float], np.ndarray]


class SimulationType:
    """
    The kinds of simulation that can be run on a model.
    """

    ODE = "ode"
    SDE = "sde"
    JUMP = "jump"


class SolverType:
    """
    Options for ODE solver used by model
    """

    ODE_INT = "odeint"
    SOLVE_IVP = "solve_ivp"
    EULER = "euler"
    RUNGE_KUTTA = "rk4"


def solve_ode(
    solver_type: str,
    ode_func: OdeFunction,
    values: np.ndarray,
    times: np.ndarray,
    solver_args: dict,
) -> np.ndarray:
    """
    Solve an ODE function given a function describing the dynamics, some initial conditions and times.
    """
    if solver_type == SolverType.ODE_INT:
        return solve_with_odeint(ode_func, values, times, solver_args)
    elif solver_type == SolverType.SOLVE_IVP:
        return solve_with_ivp(ode_func, values, times, solver_args)
    elif solver_type == SolverType.EULER:
        return solve_with_euler(ode_func, values, times, solver_args)
    elif solver_type == SolverType.RUNGE_KUTTA:
        return solve_with_rk4(ode_func, values, times, solver_args)
    else:
        raise ValueError(f"Solver type {solver_type} is not available")


def solve_with_odeint(
    ode_func: OdeFunction, values: np.ndarray, times: np.ndarray, solver_args: dict
):
    """
    Solve ODE with SciPy's odeint solver.

    https://docs.scipy.org/doc/scipy/reference/generated/scipy.integrate.odeint.html
    """
    atol = solver_args.get("atol", 1e-3)
    rtol = solver_args.get("rtol", 1e-3)
    return odeint(ode_func, values, times, atol=atol, rtol=rtol)


def solve_with_ivp(ode_func: OdeFunction, values: np.ndarray, times: np.ndarray, solver_args: dict):
    """
    Solve ODE with SciPy's solve_ivp solver, which uses an explicit Runge-Kutta 5(4) method by default.

    https://docs.scipy.org/doc/scipy/reference/generated/scipy.integrate.solve_ivp.html
    """
    method = solver_args.get("method", "RK45")
    atol = solver_args.get("atol", 1e-6)
    rtol = solver_args.get("rtol", 1e-6)

    def _ode_func(time, values):
        """Reverse parameters"""
        return ode_func(values, time)

    t_span = (times[0], times[-1])
    results = solve_ivp(
        _ode_func, t_span, np.asarray(values, dtype=float), method=method, t_eval=times, atol=atol, rtol=rtol
    )
    if not results.success:
        raise ValueError(f"ODE solver failed: {results.message}")

    return results["y"].transpose()


def solve_with_euler(
    ode_func: OdeFunction, values: np.ndarray, times: np.ndarray, solver_args: dict
):
    """
    Solve ODE with a hand-rolled Euler's method implementation.

    `WARNING: This method is too innacurate to use for real applications.`
    """
    step_size = solver_args.get("step_size", 0.1)
    integration_times = _get_integration_times(times, step_size)
    results_arr = np.zeros([len(integration_times), len(values)])
    results_arr[0] = np.array(values)

    # Perform Euler's method integration
    for time_idx, time in enumerate(integration_times[:-1]):
        values_arr = results_arr[time_idx]
        gradient_arr = ode_func(values_arr, time)
        results_arr[time_idx + 1] = values_arr + step_size * gradient_arr

    return _interpolate_solver_results(results_arr, integration_times, times)


def solve_with_rk4(ode_func: OdeFunction, values: np.ndarray, times: np.ndarray, solver_args: dict):
    """
    Solve ODE with a hand-rolled, fixed step Runge-Kutta 4 implementation.
    """
    step_size = solver_args.get("step_size", 0.1)
    integration_times = _get_integration_times(times, step_size)
    results_arr = np.zeros([len(integration_times), len(values)])
    results_arr[0] = np.array(values)

    # Perform Runge-Kutta 4 method integration
    for time_idx, time in enumerate(integration_times[:-1]):
        values_arr = results_arr[time_idx]
        k1 = step_size * ode_func(values_arr, time)
        k2 = step_size * ode_func(values_arr + k1 / 2, time + step_size / 2)
        k3 = step_size * ode_func(values_arr + k2 / 2, time + step_size / 2)
        k4 = step_size * ode_func(values_arr + k3, time + step_size)
        results_arr[time_idx + 1] = values_arr + (1 / 6) * (k1 + 2 * k2 + 2 * k3 + k4)

    return _interpolate_solver_results(results_arr, integration_times, times)


def solve_sde(
    drift_func: OdeFunction,
    diffusion_func: DiffusionFunction,
    values: np.ndarray,
    times: np.ndarray,
    solver_args: dict,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Solve an SDE with the Euler-Maruyama method, producing a single sample path.

        dX = drift(X, t) dt + diffusion(X, t) dW

    The diffusion function returns a ``NxM`` matrix, for ``N`` state variables and ``M`` independent
    sources of noise. By default, any state variables pushed below zero by a step are reset to zero
    (``positive_domain``), since populations cannot be negative.

    Solver args:
        step_size: The fixed integration step size, defaults to ``0.01``.
        positive_domain: Whether to clip negative values after each step, defaults to ``True``.

    """
    step_size = solver_args.get("step_size", 0.01)
    positive_domain = solver_args.get("positive_domain", True)
    integration_times = _get_integration_times(times, step_size)
    results_arr = np.zeros([len(integration_times), len(values)])
    results_arr[0] = np.array(values)
    noise_scale = np.sqrt(step_size)

    for time_idx, time in enumerate(integration_times[:-1]):
        values_arr = results_arr[time_idx]
        drift_arr = drift_func(values_arr, time)
        diffusion_arr = diffusion_func(values_arr, time)
        noise_arr = rng.normal(0.0, noise_scale, size=diffusion_arr.shape[1])
        new_values_arr = values_arr + step_size * drift_arr + diffusion_arr @ noise_arr
        if positive_domain:
            new_values_arr[new_values_arr < 0] = 0

        results_arr[time_idx + 1] = new_values_arr

    return _interpolate_solver_results(results_arr, integration_times, times)


class JumpTrace:
    """
    The full event history of a jump process simulation.

    Attributes:
        times: The time of each event, starting with the initial time.
        values: The state after each event, starting with the initial state.
        transitions: The index of the transition fired at each event.

    """

    def __init__(self, times: List[float], values: List[np.ndarray], transitions: List[int]):
        self.times = np.array(times)
        self.values = np.array(values)
        self.transitions = np.array(transitions, dtype=int)

    @property
    def num_events(self) -> int:
        return len(self.transitions)

    def __repr__(self):
        return f"<JumpTrace {self.num_events} events>"


def solve_jump(
    rate_func: RateFunction,
    stoichiometry: np.ndarray,
    values: np.ndarray,
    times: np.ndarray,
    solver_args: dict,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, JumpTrace]:
    """
    Simulate a discrete-state jump process with Gillespie's direct method (the stochastic simulation algorithm).

    At each step, the waiting time to the next event is drawn from an exponential distribution with the
    total event rate, and the event that fires is chosen with probability proportional to its rate.
    The simulation stops at the final requested time, or earlier if no more events can occur.

    Args:
        rate_func: Returns the rate of each event, given the current state and time.
        stoichiometry: An ``ExN`` matrix of the change in each state variable caused by each event.
        values: The initial state.
        times: The times to sample the state at. The state is a right-continuous step function of time.
        solver_args: Extra arguments, ``max_events`` caps the number of events simulated.
        rng: The random number generator to use.

    Returns:
        The state at each requested time, and the full event history.

    """
    max_events = solver_args.get("max_events", 10 ** 7)
    state = np.array(values, dtype=float)
    time = times[0]
    event_times, event_values, event_transitions = [time], [state.copy()], []
    output_arr = np.zeros([len(times), len(state)])
    output_idx = 0
    num_times = len(times)

    while True:
        rates = rate_func(state, time)
        total_rate = rates.sum()
        if total_rate > 0:
            next_time = time + rng.exponential(1 / total_rate)
        else:
            # No event can ever happen again: the state is absorbed.
            next_time = np.inf

        # Save the current state for every requested time before the next event.
        while output_idx < num_times and times[output_idx] < next_time:
            output_arr[output_idx] = state
            output_idx += 1

        if output_idx == num_times:
            break

        msg = f"Jump simulation exceeded the maximum of {max_events} events."
        assert len(event_transitions) < max_events, msg
        cumulative_rates = np.cumsum(rates)
        t_idx = int(np.searchsorted(cumulative_rates, rng.random() * total_rate, side="right"))
        if t_idx >= len(rates):
            # Rounding in the cumulative sum overshot: take the last event that can happen.
            t_idx = int(np.flatnonzero(rates > 0)[-1])

        state = state + stoichiometry[t_idx]
        time = next_time
        event_times.append(time)
        event_values.append(state.copy())
        event_transitions.append(t_idx)

    return output_arr, JumpTrace(event_times, event_values, event_transitions)


def _get_integration_times(times: np.ndarray, step_size: float) -> np.ndarray:
    """
    Returns an evenly spaced time grid, with the given step size, spanning the requested times.
    """
    start_time = times[0]
    end_time = times[-1]
    time_span = end_time - start_time
    num_steps = time_span / step_size
    assert np.isclose(
        num_steps, round(num_steps)
    ), f"Step size {step_size} must be a factor of the time span {time_span}."
    return np.linspace(start_time, end_time, int(round(num_steps)) + 1)


def _interpolate_solver_results(results_arr, integration_times, requested_times):
    """
    Interpolate solver results into an output array that matches the requested times

    results_arr: Solver results, 2D Numpy array
    integration_times: Times used to get solver results
    requested_times: Times to interpolate
    """
    # Build a function to produce interpolated results
    solved_func = interp1d(integration_times, results_arr, axis=0)
    # Create output array to store values for requested times.
    output_arr = np.zeros([len(requested_times), results_arr.shape[1]])
    output_arr[0] = results_arr[0]
    # Populate output array with interpolated results
    num_times = len(requested_times)
    for time_idx in range(1, num_times):
        time = requested_times[time_idx]
        output_arr[time_idx] = solved_func(time)

    return output_arr
