"""
The SEIR model, extended so that infectious people either recover or die.

The infectious wire is copied so that it can feed both the recovery and the death events,
which become two competing transitions out of the same **I** place.
"""
import os
from typing import List, Optional

from algepi.epidemiology import I, death, decorate_epi, exposure, illness, recovery
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
from algepi.theory import HomExpr, id, mcopy, mmerge

base_params = Params(os.path.join(os.path.dirname(__file__), "params", "seird.yml"))


def build_expression() -> HomExpr:
    """
    Returns the wiring expression for the SEIRD model.
    """
    return exposure >> (illness @ id(I)) >> mmerge(I) >> mcopy(I) >> (recovery @ death)


def build_model(params: Optional[Parameters] = None) -> PetriModel:
    """
    Returns the SEIRD model, ready to run.
    """
    params = params or base_params.build()
    model = PetriModel(
        decorate_epi(build_expression()),
        times=(params.time.start, params.time.end),
        timestep=params.time.step,
    )
    model.set_initial_population(params.initial_population)
    model.set_parameters(params.rates)
    model.request_output_for_transition(name="deaths", transition_name="death")
    model.request_cumulative_output(name="deaths_cum", source="deaths")
    model.request_output_for_compartments(
        name="alive", compartments=["S", "E", "I", "R"]
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
            title=f"SEIRD {SIMULATION_TITLES[method]}",
            times=model.times,
            values={c: v for c, v in zip(model.compartments, model.outputs.T)},
            step=is_jump,
            path=get_plot_path(output_dir, "seird", method),
        )
        plot_timeseries(
            title=f"SEIRD population ({method})",
            times=model.times,
            values={
                "Alive": model.derived_outputs["alive"],
                "Deaths": model.derived_outputs["deaths_cum"],
            },
            step=is_jump,
            path=get_plot_path(output_dir, "seird-population", method),
        )
