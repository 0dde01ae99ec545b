"""
This module contains the main class used to simulate a Petri net model.
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import networkx
import numpy as np

from algepi.petri import OpenPetriNet, PetriNet
from algepi.solver import (
    SimulationType,
    SolverType,
    solve_jump,
    solve_ode,
    solve_sde,
)

logger = logging.getLogger(__name__)

ValuesParam = Union[Dict[str, float], Sequence[float]]


class PetriModel:
    """
    A disease model, defined by a Petri net with mass-action dynamics.

    The net's places are the model's compartments, each containing a population, and the net's
    transitions are the events which move people between compartments. The model is run over
    a period of time, starting from some initial conditions, as either a deterministic ODE,
    a stochastic differential equation, or a discrete-state jump process.

    Args:
        net: The Petri net to simulate.
        times: The start and end times.
        timestep (optional): The timesteps to return results for. Does not affect the solvers. Defaults to ``1``.

    Attributes:
        times (np.ndarray): The times that the model will report results for.
        compartments (List[str]): The model's compartment names, one per place in the net.
        initial_population (np.ndarray): The model's starting population. The indices of this
            array will match up with ``compartments``. This is zero by default and can be set with ``set_initial_population``.
        parameters (np.ndarray): The rate constant of each transition, set with ``set_parameters``.
        outputs (np.ndarray): The values of each compartment for each requested timestep. For ``C`` compartments and
            ``T`` timesteps this will be a ``TxC`` matrix.
        derived_outputs (Dict[str, np.ndarray]): Additional results that are caculated from ``outputs`` for each timestep.
        jump_trace (JumpTrace): The event history of the last jump process run, if any.

    """

    def __init__(
        self,
        net: Union[PetriNet, OpenPetriNet],
        times: Tuple[float, float],
        timestep: float = 1.0,
    ):
        start_t, end_t = times
        assert start_t >= 0, "Start time must be >= 0"
        assert end_t > start_t, "End time must be greater than start time"
        num_steps = (end_t - start_t) / timestep
        assert num_steps >= 1, "Time step should be less than time period."
        assert np.isclose(num_steps, round(num_steps)), "Time step should be a factor of time period"
        self.times = np.linspace(start_t, end_t, num=int(round(num_steps)) + 1)

        if isinstance(net, OpenPetriNet):
            net = net.net

        self.net = net
        self.compartments = [
            label if label is not None else f"place_{idx}"
            for idx, label in enumerate(net.place_labels)
        ]
        self.transitions = [
            name if name is not None else f"transition_{idx}"
            for idx, name in enumerate(net.transition_names)
        ]
        self.initial_population = np.zeros(net.num_places, dtype=float)
        self.parameters = None
        # No outputs until the model has been run.
        self.outputs = None
        self.derived_outputs = None
        self.jump_trace = None
        # Track derived output requests in a dictionary.
        self._derived_output_requests = {}
        # Track derived output request dependencies in a directed acylic graph (DAG).
        self._derived_output_graph = networkx.DiGraph()
        # Whitelist of derived outputs to evaluate
        self._derived_outputs_whitelist = []

    def set_initial_population(self, distribution: ValuesParam):
        """
        Sets the initial population of the model, which is zero by default.

        Args:
            distribution: A map of populations to be assigned to compartments,
                or a sequence of populations in compartment order.

        """
        values = self._to_array(distribution, self.compartments, "compartment")
        for name, pop in zip(self.compartments, values):
            assert pop >= 0, f"Population for {name} cannot be negative: {pop}"

        self.initial_population = values

    def set_parameters(self, rates: ValuesParam):
        """
        Sets the rate constant of every transition in the model.

        Args:
            rates: A map of transition name to rate constant, or a sequence of rate constants in transition order.

        """
        if isinstance(rates, dict):
            missing = [t for t in self.transitions if t not in rates]
            assert not missing, f"No rate supplied for transitions: {missing}"

        values = self._to_array(rates, self.transitions, "transition")
        for name, rate in zip(self.transitions, values):
            assert rate >= 0, f"Rate for {name} must be >= 0: {rate}"

        self.parameters = values

    def _to_array(self, values: ValuesParam, names: List[str], kind: str) -> np.ndarray:
        if isinstance(values, dict):
            unknown = [k for k in values.keys() if k not in names]
            assert not unknown, f"Unknown {kind} names: {unknown}"
            ambiguous = [k for k in values.keys() if names.count(k) > 1]
            assert not ambiguous, f"Cannot set values by name, more than one {kind} is named: {ambiguous}"
            return np.array([values.get(n, 0) for n in names], dtype=float)

        values = np.array(values, dtype=float)
        msg = f"Expected {len(names)} {kind} values, got {len(values)}"
        assert values.shape == (len(names),), msg
        return values

    """
    Running the model
    """

    def run(
        self,
        method: str = SimulationType.ODE,
        solver: str = SolverType.SOLVE_IVP,
        solver_args: Optional[dict] = None,
        seed: Optional[int] = None,
    ):
        """
        Runs the model over the provided time span, calculating the outputs and the derived outputs.

        Args:
            method (optional): The kind of simulation to run, one of ``SimulationType``. Defaults to an ODE.
            solver (optional): The ODE solver to use, defaults to SciPy's IVP solver. Only used for ODE runs.
            solver_args (optional): Extra arguments to supplied to the solver, see ``algepi.solver`` for details.
            seed (optional): The random seed used for stochastic simulations.

        """
        assert self.parameters is not None, "Cannot run model: parameters have not been set."
        solver_args = solver_args or {}
        logger.info("Running %s simulation of %s", method, self.net)
        self.jump_trace = None
        if method == SimulationType.ODE:
            self.outputs = solve_ode(
                solver,
                self._get_flow_rates,
                self.initial_population,
                self.times,
                solver_args,
            )
        elif method == SimulationType.SDE:
            self.outputs = solve_sde(
                self._get_flow_rates,
                self._get_diffusion,
                self.initial_population,
                self.times,
                solver_args,
                np.random.default_rng(seed),
            )
        elif method == SimulationType.JUMP:
            self.outputs, self.jump_trace = solve_jump(
                self._get_jump_rates,
                self.net.stoichiometry,
                self.initial_population,
                self.times,
                solver_args,
                np.random.default_rng(seed),
            )
            logger.info("Jump simulation finished after %s events", self.jump_trace.num_events)
        else:
            raise ValueError(f"Simulation type {method} is not available")

        # Calculate any requested derived outputs, based on the calculated compartment sizes.
        self.derived_outputs = self._calculate_derived_outputs()

    def _get_transition_rates(self, compartment_values: np.ndarray, time: float) -> np.ndarray:
        """
        Get the rate at which each transition fires.
        """
        # Zero out -ve compartment sizes in flow rate calculations,
        # to prevent negative values from messing up the direction of flows.
        # We don't expect large -ve values, but there can be small ones due to numerical errors.
        comp_vals = np.maximum(compartment_values, 0)
        return self.net.get_rates(comp_vals, self.parameters)

    def _get_jump_rates(self, compartment_values: np.ndarray, time: float) -> np.ndarray:
        return self.net.get_jump_rates(compartment_values, self.parameters)

    def _get_flow_rates(self, compartment_values: np.ndarray, time: float) -> np.ndarray:
        """
        Get net flows into and out of all compartments.
        This function is passed to the ODE and SDE solvers and defines the dynamics of the model.
        """
        rates = self._get_transition_rates(compartment_values, time)
        return self.net.stoichiometry.T @ rates

    def _get_diffusion(self, compartment_values: np.ndarray, time: float) -> np.ndarray:
        comp_vals = np.maximum(compartment_values, 0)
        return self.net.get_diffusion(comp_vals, self.parameters)

    """
    Requesting and calculating derived outputs
    """
    _TRANSITION_REQUEST = "transition"
    _COMPARTMENT_REQUEST = "comp"
    _AGGREGATE_REQUEST = "agg"
    _CUMULATIVE_REQUEST = "cum"
    _FUNCTION_REQUEST = "func"

    def set_derived_outputs_whitelist(self, whitelist: List[str]):
        """
        Request that we should only calculate a subset of the model's derived outputs.

        Args:
            whitelist: A list of the derived output names to calculate, ignoring all others.

        """
        for name in whitelist:
            assert name in self._derived_output_requests, f"Derived output {name} has not been requested."

        self._derived_outputs_whitelist = whitelist

    def _calculate_derived_outputs(self):
        """
        Calculates all requested derived outputs from the calculated compartment sizes.
        """
        assert self.outputs is not None, "Cannot calculate derived outputs: model has not been run."
        error_msg = "Cannot calculate derived outputs: dependency graph has cycles."
        assert networkx.is_directed_acyclic_graph(self._derived_output_graph), error_msg
        graph = self._derived_output_graph.copy()

        if self._derived_outputs_whitelist:
            # Only calculate the required outputs and their dependencies, ignore everything else.
            required_nodes = set()
            for name in self._derived_outputs_whitelist:
                output_dependencies = networkx.ancestors(graph, name) | {name}
                required_nodes = required_nodes.union(output_dependencies)

            for node in list(graph.nodes):
                if node not in required_nodes:
                    graph.remove_node(node)

        derived_outputs = {}
        outputs_to_delete_after = []
        # Calculate all the outputs in the correct order so that each output has its dependencies fulfilled.
        for name in networkx.topological_sort(graph):
            request = self._derived_output_requests[name]
            request_type = request["request_type"]
            output = np.zeros(self.times.shape)

            if not request["save_results"]:
                # Delete the results of this output once the calcs are done.
                outputs_to_delete_after.append(name)

            if request_type == self._TRANSITION_REQUEST:
                output = self._calculate_transition_output(request)

            elif request_type == self._COMPARTMENT_REQUEST:
                # User wants to track a set of compartment sizes over time.
                idxs = [i for i, c in enumerate(self.compartments) if c in request["compartments"]]
                output = self.outputs[:, idxs].sum(axis=1)

            elif request_type == self._AGGREGATE_REQUEST:
                # User wants to track the sum of a set of outputs over time.
                output = sum([derived_outputs[s] for s in request["sources"]])

            elif request_type == self._CUMULATIVE_REQUEST:
                # User wants to track cumulative value of an output over time.
                source_name = request["source"]
                start_time = request["start_time"]
                max_time = self.times.max()
                if start_time is not None and start_time > max_time:
                    # Handle case where the derived output starts accumulating after the last model timestep.
                    msg = f"Cumulative output '{name}' start time {start_time} is greater than max model time {max_time}, defaulting to {max_time}"
                    logger.warning(msg)
                    start_time = max_time

                if start_time is None:
                    output = np.cumsum(derived_outputs[source_name])
                else:
                    assert np.isclose(
                        self.times, start_time
                    ).any(), f"Start time {start_time} not in times for '{name}'"
                    start_idx = int(np.argmin(np.abs(self.times - start_time)))
                    output[start_idx:] = np.cumsum(derived_outputs[source_name][start_idx:])

            elif request_type == self._FUNCTION_REQUEST:
                # User wants to track the results of a function of other outputs over time.
                inputs = [derived_outputs[s] for s in request["sources"]]
                output = request["func"](*inputs)

            derived_outputs[name] = output

        # Delete any intermediate outputs that we don't want to save.
        for name in outputs_to_delete_after:
            del derived_outputs[name]

        return derived_outputs

    def _calculate_transition_output(self, request: dict) -> np.ndarray:
        """
        Calculates the firing of a named transition over time.
        """
        t_idxs = [i for i, t in enumerate(self.transitions) if t == request["transition_name"]]
        if request["raw_results"]:
            # Use the transition's rate at each requested time.
            rates = np.array([self._get_transition_rates(v, 0) for v in self.outputs])
            return rates[:, t_idxs].sum(axis=1)

        output = np.zeros(self.times.shape)
        if self.jump_trace is not None:
            # Count the events that happened in each interval between timesteps.
            is_match = np.isin(self.jump_trace.transitions, t_idxs)
            event_times = self.jump_trace.times[1:][is_match]
            interval_idxs = np.searchsorted(self.times, event_times, side="left")
            output = np.bincount(interval_idxs, minlength=len(self.times)).astype(float)
        else:
            # Estimate the number of firings in each interval between timesteps,
            # using the average of the rates at the start and end of the interval.
            # By convention, nothing fires before the first timestep.
            rates = np.array([self._get_transition_rates(v, 0) for v in self.outputs])
            rates = rates[:, t_idxs].sum(axis=1)
            output[1:] = (rates[1:] + rates[:-1]) / 2 * np.diff(self.times)

        return output

    def request_output_for_transition(
        self,
        name: str,
        transition_name: str,
        save_results: bool = True,
        raw_results: bool = False,
    ):
        """
        Adds a derived output to the model's results. The output will be the number of times
        the requested transition fired in each interval between timesteps.
        For deterministic and SDE runs this is estimated from the transition's rate.

        Args:
            name: The name of the derived output.
            transition_name: The name of the transition to track.
            save_results (optional): Whether to save or discard the results. Defaults to ``True``.
            raw_results (optional): Whether to report the transition's instantaneous rate at each timestep instead.
                Defaults to ``False``.

        """
        msg = f"A derived output named {name} already exists."
        assert name not in self._derived_output_requests, msg
        assert transition_name in self.transitions, f"No transition matches: {transition_name}"
        msg = f"More than one transition is named: {transition_name}"
        assert self.transitions.count(transition_name) == 1, msg
        self._derived_output_graph.add_node(name)
        self._derived_output_requests[name] = {
            "request_type": self._TRANSITION_REQUEST,
            "transition_name": transition_name,
            "raw_results": raw_results,
            "save_results": save_results,
        }

    def request_output_for_compartments(
        self,
        name: str,
        compartments: List[str],
        save_results: bool = True,
    ):
        """
        Adds a derived output to the model's results. The output
        will be the aggregate population of the requested compartments at the at each timestep.

        Args:
            name: The name of the derived output.
            compartments: The name of the compartments to track.
            save_results (optional): Whether to save or discard the results.

        """
        msg = f"A derived output named {name} already exists."
        assert name not in self._derived_output_requests, msg
        is_match_exists = any([c in compartments for c in self.compartments])
        assert is_match_exists, f"No compartment matches: {compartments}"
        ambiguous = [c for c in compartments if self.compartments.count(c) > 1]
        assert not ambiguous, f"More than one compartment is named: {ambiguous}"
        self._derived_output_graph.add_node(name)
        self._derived_output_requests[name] = {
            "request_type": self._COMPARTMENT_REQUEST,
            "compartments": compartments,
            "save_results": save_results,
        }

    def request_aggregate_output(
        self,
        name: str,
        sources: List[str],
        save_results: bool = True,
    ):
        """
        Adds a derived output to the model's results. The output will be the aggregate of other derived outputs.

        Args:
            name: The name of the derived output.
            sources: The names of the derived outputs to aggregate.
            save_results (optional): Whether to save or discard the results.

        """
        msg = f"A derived output named {name} already exists."
        assert name not in self._derived_output_requests, msg
        for source in sources:
            assert (
                source in self._derived_output_requests
            ), f"Source {source} has not been requested."
            self._derived_output_graph.add_edge(source, name)

        self._derived_output_graph.add_node(name)
        self._derived_output_requests[name] = {
            "request_type": self._AGGREGATE_REQUEST,
            "sources": sources,
            "save_results": save_results,
        }

    def request_cumulative_output(
        self,
        name: str,
        source: str,
        start_time: Optional[float] = None,
        save_results: bool = True,
    ):
        """
        Adds a derived output to the model's results. The output will be the cumulative value
        of another derived outputs over the model's time period.

        Args:
            name: The name of the derived output.
            source: The name of the derived outputs to accumulate.
            start_time (optional): The time to start accumulating from, defaults to model start time.
            save_results (optional): Whether to save or discard the results.

        """
        msg = f"A derived output named {name} already exists."
        assert name not in self._derived_output_requests, msg
        assert source in self._derived_output_requests, f"Source {source} has not been requested."
        self._derived_output_graph.add_node(name)
        self._derived_output_graph.add_edge(source, name)
        self._derived_output_requests[name] = {
            "request_type": self._CUMULATIVE_REQUEST,
            "source": source,
            "start_time": start_time,
            "save_results": save_results,
        }

    def request_function_output(
        self,
        name: str,
        func: Callable[..., np.ndarray],
        sources: List[str],
        save_results: bool = True,
    ):
        """
        Adds a derived output to the model's results. The output will be the result of a function
        which takes a list of sources as an input.

        Args:
            name: The name of the derived output.
            func: A function used to calculate the derived ouput.
            sources: The derived ouputs to input into the function.
            save_results (optional): Whether to save or discard the results.

        Example:
            Request the prevalence of infection::

                model.request_output_for_compartments(
                    name="total_population", compartments=["S", "I", "R"], save_results=False
                )
                model.request_output_for_compartments(
                    name="infectious_population", compartments=["I"], save_results=False
                )
                model.request_function_output(
                    name="prevalence",
                    func=lambda infectious, total: infectious / total,
                    sources=["infectious_population", "total_population"],
                )

        """
        msg = f"A derived output named {name} already exists."
        assert name not in self._derived_output_requests, msg
        for source in sources:
            assert (
                source in self._derived_output_requests
            ), f"Source {source} has not been requested."
            self._derived_output_graph.add_edge(source, name)

        self._derived_output_graph.add_node(name)
        self._derived_output_requests[name] = {
            "request_type": self._FUNCTION_REQUEST,
            "func": func,
            "sources": sources,
            "save_results": save_results,
        }
