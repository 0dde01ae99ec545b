"""
This module contains the Petri net representation used to turn a composed model
into something that can be simulated, and the open Petri nets used to build it.
"""
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
from numba import jit


class Transition:
    """
    A single transition (event) in a Petri net.
    Each transition consumes tokens from its input places and produces tokens in its output places.

    Args:
        inputs: A map of place index to the number of tokens consumed.
        outputs: A map of place index to the number of tokens produced.
        name (optional): The transition's name.

    Example:
        A mass-action transmission event, S + I -> 2I::

            Transition(inputs={0: 1, 1: 1}, outputs={1: 2}, name="transmission")

    """

    def __init__(
        self,
        inputs: Dict[int, int],
        outputs: Dict[int, int],
        name: Optional[str] = None,
    ):
        for arcs in (inputs, outputs):
            for place, mult in arcs.items():
                assert mult > 0, f"Multiplicity for place {place} must be positive, got {mult}"

        self.inputs = dict(inputs)
        self.outputs = dict(outputs)
        self.name = name

    def relabel(self, mapping: Sequence[int], name: Optional[str] = None) -> "Transition":
        """
        Returns a copy of the transition with place indices sent through ``mapping``.
        Arcs which end up on the same place have their multiplicities added.
        """
        return Transition(
            inputs=_remap_arcs(self.inputs, mapping),
            outputs=_remap_arcs(self.outputs, mapping),
            name=self.name if name is None else name,
        )

    def __eq__(self, obj):
        return (
            type(obj) is Transition
            and obj.inputs == self.inputs
            and obj.outputs == self.outputs
            and obj.name == self.name
        )

    def __repr__(self):
        return f"<Transition '{self.name}' {self.inputs} -> {self.outputs}>"


def _remap_arcs(arcs: Dict[int, int], mapping: Sequence[int]) -> Dict[int, int]:
    new_arcs = {}
    for place, mult in arcs.items():
        new_place = mapping[place]
        new_arcs[new_place] = new_arcs.get(new_place, 0) + mult

    return new_arcs


class PetriNet:
    """
    A Petri net with mass-action semantics.

    Places are the model's compartments, and transitions are the events which move
    populations between them. The rate of each transition is its rate constant
    multiplied by the population of each input place, raised to the multiplicity
    of the arc from that place.

    Args:
        places: The number of places, or a list of place labels.
        transitions: The transitions of the net.

    Attributes:
        input_matrix (np.ndarray): A ``TxP`` matrix of input arc multiplicities.
        output_matrix (np.ndarray): A ``TxP`` matrix of output arc multiplicities.
        stoichiometry (np.ndarray): The net change in each place when each transition fires.

    """

    def __init__(self, places: Union[int, Sequence[Optional[str]]], transitions: List[Transition]):
        if type(places) is int:
            assert places >= 0, "Number of places cannot be negative."
            self.place_labels = [None] * places
        else:
            self.place_labels = list(places)

        self.transitions = list(transitions)
        for t in self.transitions:
            for place in [*t.inputs.keys(), *t.outputs.keys()]:
                msg = f"Transition {t} refers to place {place}, but net has {self.num_places} places."
                assert 0 <= place < self.num_places, msg

        self.input_matrix = np.zeros((self.num_transitions, self.num_places), dtype=np.int64)
        self.output_matrix = np.zeros((self.num_transitions, self.num_places), dtype=np.int64)
        for t_idx, t in enumerate(self.transitions):
            for place, mult in t.inputs.items():
                self.input_matrix[t_idx, place] = mult
            for place, mult in t.outputs.items():
                self.output_matrix[t_idx, place] = mult

        self.stoichiometry = self.output_matrix - self.input_matrix

    @property
    def num_places(self) -> int:
        return len(self.place_labels)

    @property
    def num_transitions(self) -> int:
        return len(self.transitions)

    @property
    def transition_names(self) -> List[Optional[str]]:
        return [t.name for t in self.transitions]

    def get_place_index(self, label: str) -> int:
        """
        Returns the index of the place with the given label.
        """
        matches = [i for i, l in enumerate(self.place_labels) if l == label]
        if not matches:
            raise KeyError(f"No place labelled '{label}' in net with places {self.place_labels}")

        assert len(matches) == 1, f"More than one place is labelled '{label}'."
        return matches[0]

    def get_rates(self, values: np.ndarray, rate_constants: np.ndarray) -> np.ndarray:
        """
        Returns the mass-action rate of each transition, given the population of each place.
        """
        return _find_mass_action_rates(
            np.asarray(values, dtype=np.float64),
            self.input_matrix,
            np.asarray(rate_constants, dtype=np.float64),
        )

    def get_jump_rates(self, values: np.ndarray, rate_constants: np.ndarray) -> np.ndarray:
        """
        Returns the propensity of each transition in a discrete-state jump process.
        Each input place contributes the number of ways of choosing its tokens in order,
        ``x * (x - 1) * ... * (x - m + 1)``, so a transition cannot fire without enough tokens.
        """
        return _find_jump_rates(
            np.asarray(values, dtype=np.float64),
            self.input_matrix,
            np.asarray(rate_constants, dtype=np.float64),
        )

    def get_vector_field(self, values: np.ndarray, rate_constants: np.ndarray) -> np.ndarray:
        """
        Returns the rate of change of each place's population.
        """
        rates = self.get_rates(values, rate_constants)
        return self.stoichiometry.T @ rates

    def get_diffusion(self, values: np.ndarray, rate_constants: np.ndarray) -> np.ndarray:
        """
        Returns the ``PxT`` noise matrix of the chemical Langevin approximation to this net,
        where each transition contributes noise proportional to the square root of its rate.
        """
        rates = self.get_rates(values, rate_constants)
        return self.stoichiometry.T * np.sqrt(np.maximum(rates, 0))

    def copy(self) -> "PetriNet":
        return PetriNet(list(self.place_labels), [t.relabel(range(self.num_places)) for t in self.transitions])

    def __eq__(self, obj):
        return (
            type(obj) is PetriNet
            and obj.place_labels == self.place_labels
            and obj.transitions == self.transitions
        )

    def __repr__(self):
        return f"<PetriNet places={self.place_labels} transitions={self.transition_names}>"


@jit(nopython=True)
def _find_mass_action_rates(
    values: np.ndarray, input_matrix: np.ndarray, rate_constants: np.ndarray
) -> np.ndarray:
    num_transitions, num_places = input_matrix.shape
    rates = np.zeros(num_transitions)
    for t_idx in range(num_transitions):
        rate = rate_constants[t_idx]
        for p_idx in range(num_places):
            mult = input_matrix[t_idx, p_idx]
            if mult > 0:
                rate *= values[p_idx] ** mult

        rates[t_idx] = rate

    return rates


@jit(nopython=True)
def _find_jump_rates(
    values: np.ndarray, input_matrix: np.ndarray, rate_constants: np.ndarray
) -> np.ndarray:
    num_transitions, num_places = input_matrix.shape
    rates = np.zeros(num_transitions)
    for t_idx in range(num_transitions):
        rate = rate_constants[t_idx]
        for p_idx in range(num_places):
            mult = input_matrix[t_idx, p_idx]
            for offset in range(mult):
                # Falling factorial, zero once the place runs out of tokens.
                rate *= max(values[p_idx] - offset, 0.0)

        rates[t_idx] = rate

    return rates


class OpenPetriNet:
    """
    A Petri net with two "legs", which are the places exposed to the outside world.
    Open Petri nets can be glued together along their legs to build larger nets.

    Args:
        net: The underlying Petri net.
        dom: The places that form the input leg.
        codom: The places that form the output leg.

    Example:
        A recovery event I -> R, with I as the input leg and R as the output leg::

            OpenPetriNet(PetriNet(2, [Transition({0: 1}, {1: 1})]), dom=[0], codom=[1])

    """

    def __init__(self, net: PetriNet, dom: Sequence[int], codom: Sequence[int]):
        for leg in (dom, codom):
            for place in leg:
                assert 0 <= place < net.num_places, f"Leg place {place} is not in the net."

        self.net = net
        self.dom = list(dom)
        self.codom = list(codom)

    @staticmethod
    def identity(num_places: int) -> "OpenPetriNet":
        places = list(range(num_places))
        return OpenPetriNet(PetriNet(num_places, []), places, places)

    @staticmethod
    def braid(num_left: int, num_right: int) -> "OpenPetriNet":
        num_places = num_left + num_right
        dom = list(range(num_places))
        codom = dom[num_left:] + dom[:num_left]
        return OpenPetriNet(PetriNet(num_places, []), dom, codom)

    @staticmethod
    def copy(num_places: int, n: int = 2) -> "OpenPetriNet":
        places = list(range(num_places))
        return OpenPetriNet(PetriNet(num_places, []), places, places * n)

    @staticmethod
    def merge(num_places: int, n: int = 2) -> "OpenPetriNet":
        places = list(range(num_places))
        return OpenPetriNet(PetriNet(num_places, []), places * n, places)

    @staticmethod
    def delete(num_places: int) -> "OpenPetriNet":
        return OpenPetriNet(PetriNet(num_places, []), list(range(num_places)), [])

    @staticmethod
    def create(num_places: int) -> "OpenPetriNet":
        return OpenPetriNet(PetriNet(num_places, []), [], list(range(num_places)))

    def compose(self, other: "OpenPetriNet") -> "OpenPetriNet":
        """
        Glues the output leg of this net onto the input leg of another net.
        Places which are glued together become a single place in the new net.
        """
        if len(self.codom) != len(other.dom):
            msg = f"Cannot compose open nets: output leg has {len(self.codom)} places, input leg has {len(other.dom)}."
            raise ValueError(msg)

        offset = self.net.num_places
        num_places = offset + other.net.num_places
        parents = list(range(num_places))

        def find(idx):
            while parents[idx] != idx:
                parents[idx] = parents[parents[idx]]
                idx = parents[idx]
            return idx

        for left, right in zip(self.codom, other.dom):
            left_root, right_root = find(left), find(right + offset)
            if left_root != right_root:
                parents[max(left_root, right_root)] = min(left_root, right_root)

        # Number the merged places in order of first appearance.
        root_idxs = {}
        mapping = []
        for idx in range(num_places):
            root = find(idx)
            if root not in root_idxs:
                root_idxs[root] = len(root_idxs)
            mapping.append(root_idxs[root])

        labels = [None] * len(root_idxs)
        for idx, label in enumerate(self.net.place_labels + other.net.place_labels):
            if labels[mapping[idx]] is None:
                labels[mapping[idx]] = label

        other_mapping = mapping[offset:]
        transitions = [t.relabel(mapping) for t in self.net.transitions]
        transitions += [t.relabel(other_mapping) for t in other.net.transitions]
        return OpenPetriNet(
            PetriNet(labels, transitions),
            dom=[mapping[p] for p in self.dom],
            codom=[other_mapping[p] for p in other.codom],
        )

    def otimes(self, other: "OpenPetriNet") -> "OpenPetriNet":
        """
        Places two open nets side by side, without any shared places.
        """
        offset = self.net.num_places
        other_mapping = [p + offset for p in range(other.net.num_places)]
        transitions = [t.relabel(range(offset)) for t in self.net.transitions]
        transitions += [t.relabel(other_mapping) for t in other.net.transitions]
        return OpenPetriNet(
            PetriNet(self.net.place_labels + other.net.place_labels, transitions),
            dom=self.dom + [other_mapping[p] for p in other.dom],
            codom=self.codom + [other_mapping[p] for p in other.codom],
        )

    def __repr__(self):
        return f"<OpenPetriNet {self.dom} -> {self.net} -> {self.codom}>"
