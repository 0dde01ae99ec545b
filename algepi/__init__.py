"""
Compose compartmental disease models from small building blocks, and simulate them
as ODEs, SDEs and jump processes.
"""
from algepi.functor import PetriFunctor
from algepi.model import PetriModel
from algepi.petri import OpenPetriNet, PetriNet, Transition
from algepi.solver import SimulationType, SolverType
from algepi.theory import CompositionError, Presentation, compose, otimes
from algepi.wiring import WiringDiagram
