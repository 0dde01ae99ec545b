"""
A basic example showing how to compose a model from building blocks.

Create a SIR compartmental model for some fictional disease, by wiring the transmission
event (S⊗I → I) into the recovery event (I → R), and turning the result into a Petri net.
It has three compartments (**S**, **I**, **R**) and runs from time **0** to **40**.
There will be a starting population of **1000** people, with **10** of them infectious.

The same Petri net is simulated three ways: as an ODE, as an SDE and as a jump process.
"""
import os
from typing import List, Optional

from algepi.epidemiology import decorate_epi, recovery, transmission
from algepi.examples.utils import (
    SIMULATION_TITLES,
    SIMULATIONS,
    get_plot_path,
    run_model,
)
from algepi.model import PetriModel
from algepi.params import Parameters, Params
from algepi.plotting import plot_timeseries
from algepi.theory import HomExpr
from algepi.solver import SimulationType

base_params = Params(os.path.join(os.path.dirname(__file__), "params", "sir.yml"))


def build_expression() -> HomExpr:
    """
    Returns the wiring expression for the SIR model: transmission, then recovery.
    """
    return transmission >> recovery


def build_model(params: Optional[Parameters] = None) -> PetriModel:
    """
    Returns the SIR model, ready to run.
    """
    params = params or base_params.build()
    sir_net = decorate_epi(build_expression())
    model = PetriModel(
        sir_net,
        times=(params.time.start, params.time.end),
        timestep=params.time.step,
    )
    model.set_initial_population(params.initial_population)
    model.set_parameters(params.rates)
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
        plot_timeseries(
            title=f"SIR {SIMULATION_TITLES[method]}",
            times=model.times,
            values={c: v for c, v in zip(model.compartments, model.outputs.T)},
            step=method == SimulationType.JUMP,
            path=get_plot_path(output_dir, "sir", method),
        )
