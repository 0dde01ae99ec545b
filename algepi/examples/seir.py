"""
A slightly more complicated version of the SIR model, with richer outputs.

Susceptible people who meet infectious people become exposed (**E**), and later infectious.
The exposure event (S⊗I → E⊗I) hands back both the newly exposed and the infectious person,
so the infectious wire is carried alongside the illness event and merged with its output
before recovery.
"""
import os
from typing import List, Optional

from algepi.epidemiology import I, decorate_epi, exposure, illness, recovery
from algepi.examples.utils import (
    SIMULATION_TITLES,
    SIMULATIONS,
    get_plot_path,
    run_model,
)
from algepi.model import PetriModel
from algepi.params import Parameters, Params
from algepi.plotting import plot_timeseries
from algepi.solver import SimulationType
from algepi.theory import HomExpr, id, mmerge

base_params = Params(os.path.join(os.path.dirname(__file__), "params", "seir.yml"))


def build_expression() -> HomExpr:
    """
    Returns the wiring expression for the SEIR model.
    """
    return exposure >> (illness @ id(I)) >> mmerge(I) >> recovery


def build_model(params: Optional[Parameters] = None) -> PetriModel:
    """
    Returns the SEIR model, ready to run.
    """
    params = params or base_params.build()
    model = PetriModel(
        decorate_epi(build_expression()),
        times=(params.time.start, params.time.end),
        timestep=params.time.step,
    )
    model.set_initial_population(params.initial_population)
    model.set_parameters(params.rates)

    # Track the number of new exposures and the prevalence of infection over time.
    model.request_output_for_transition(name="incidence", transition_name="exposure")
    model.request_cumulative_output(name="incidence_cum", source="incidence")
    model.request_output_for_compartments(
        name="count_infectious", compartments=["I"], save_results=False
    )
    model.request_output_for_compartments(
        name="total_population", compartments=["S", "E", "I", "R"], save_results=False
    )
    model.request_function_output(
        name="prevalence",
        sources=["count_infectious", "total_population"],
        func=lambda count, total: count / total,
    )
    return model


def plot_outputs(
    model: PetriModel,
    params: Optional[Parameters] = None,
    methods: List[str] = SIMULATIONS,
    output_dir: Optional[str] = None,
):
    """
    Run the model with each simulation method and plot the results.
    """
    params = params or base_params.build()
    for method in methods:
        run_model(model, params, method)
        is_jump = method == SimulationType.JUMP
        plot_timeseries(
            title=f"SEIR {SIMULATION_TITLES[method]}",
            times=model.times,
            values={c: v for c, v in zip(model.compartments, model.outputs.T)},
            step=is_jump,
            path=get_plot_path(output_dir, "seir", method),
        )
        plot_timeseries(
            title=f"SEIR cumulative incidence ({method})",
            times=model.times,
            values={"Exposures": model.derived_outputs["incidence_cum"]},
            step=is_jump,
            path=get_plot_path(output_dir, "seir-incidence", method),
        )
