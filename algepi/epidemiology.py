"""
Building blocks for compartmental models of infectious disease.

This module declares a small theory of infectious disease, with five compartment types
and five events that move people between them, along with the Petri net template used
to represent each event.
"""
from algepi.functor import PetriFunctor
from algepi.petri import OpenPetriNet, PetriNet, Transition
from algepi.theory import HomExpr, Presentation

EPIDEMIOLOGY = Presentation("Epidemiology")
S, E, I, R, D = EPIDEMIOLOGY.add_obs("S", "E", "I", "R", "D")

# Susceptible people meet infectious people and become infectious.
transmission = EPIDEMIOLOGY.add_hom("transmission", [S, I], [I])
# Susceptible people meet infectious people and become exposed.
exposure = EPIDEMIOLOGY.add_hom("exposure", [S, I], [E, I])
# Exposed people become infectious.
illness = EPIDEMIOLOGY.add_hom("illness", [E], [I])
recovery = EPIDEMIOLOGY.add_hom("recovery", [I], [R])
death = EPIDEMIOLOGY.add_hom("death", [I], [D])

# A spontaneous change from one state to another: X -> Y
spontaneous_petri = OpenPetriNet(
    PetriNet(2, [Transition(inputs={0: 1}, outputs={1: 1})]),
    dom=[0],
    codom=[1],
)
# Mass-action transmission: X + Y -> 2Y
transmission_petri = OpenPetriNet(
    PetriNet(2, [Transition(inputs={0: 1, 1: 1}, outputs={1: 2})]),
    dom=[0, 1],
    codom=[1],
)
# Mass-action exposure: X + Y -> Z + Y
exposure_petri = OpenPetriNet(
    PetriNet(3, [Transition(inputs={0: 1, 1: 1}, outputs={2: 1, 1: 1})]),
    dom=[0, 1],
    codom=[2, 1],
)

# Each compartment is represented by a single place.
EPI_OB_MAP = {ob.name: 1 for ob in EPIDEMIOLOGY.obs}
EPI_HOM_MAP = {
    "transmission": transmission_petri,
    "exposure": exposure_petri,
    "illness": spontaneous_petri,
    "recovery": spontaneous_petri,
    "death": spontaneous_petri,
}
EPI_FUNCTOR = PetriFunctor(EPI_OB_MAP, EPI_HOM_MAP)


def decorate_epi(expr: HomExpr) -> PetriNet:
    """
    Returns the Petri net for a composition of infectious disease events.

    Args:
        expr: A morphism expression built from the events of the ``EPIDEMIOLOGY`` theory.

    Example:
        Build the SIR model's Petri net::

            sir_net = decorate_epi(transmission >> recovery)

    """
    return EPI_FUNCTOR(expr).net
