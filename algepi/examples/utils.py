import os
from typing import Optional

from algepi.model import PetriModel
from algepi.params import Parameters
from algepi.solver import SimulationType

SIMULATIONS = [SimulationType.ODE, SimulationType.SDE, SimulationType.JUMP]

SIMULATION_TITLES = {
    SimulationType.ODE: "ODE solution",
    SimulationType.SDE: "SDE sample path",
    SimulationType.JUMP: "jump process sample path",
}


def get_solver_args(method: str, params: Parameters) -> dict:
    """
    Returns the solver arguments for a given kind of simulation.
    """
    settings = params.solver
    if method == SimulationType.ODE:
        return dict(settings.ode_args)
    elif method == SimulationType.SDE:
        return {"step_size": settings.sde_step_size, "positive_domain": settings.positive_domain}
    elif method == SimulationType.JUMP:
        return {"max_events": settings.max_events}
    else:
        raise ValueError(f"Simulation type {method} is not available")


def run_model(model: PetriModel, params: Parameters, method: str):
    """
    Run a model with the solver settings and random seed from its parameters.
    """
    model.run(
        method=method,
        solver=params.solver.ode_solver,
        solver_args=get_solver_args(method, params),
        seed=params.seed,
    )


def get_plot_path(output_dir: Optional[str], name: str, method: str) -> Optional[str]:
    if not output_dir:
        return None

    os.makedirs(output_dir, exist_ok=True)
    return os.path.join(output_dir, f"{name}-{method}.png")
