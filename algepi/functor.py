"""
Decorates a morphism expression with open Petri nets, producing a single composed net.
"""
import logging
from functools import reduce
from typing import Dict

from algepi.petri import OpenPetriNet, PetriNet
from algepi.theory import (
    Braid,
    Compose,
    Copy,
    Create,
    Delete,
    Generator,
    HomExpr,
    Id,
    Merge,
    Otimes,
)

logger = logging.getLogger(__name__)


class PetriFunctor:
    """
    Maps morphism expressions onto open Petri nets.
    Each object type is sent to a number of places, and each named morphism is sent to an open
    Petri net template. Composite expressions are mapped by gluing the templates together.

    Args:
        ob_map: A map of object name to the number of places it is represented by.
        hom_map: A map of morphism name to its open Petri net template.

    Example:
        Build the SIR Petri net from its wiring expression::

            functor = PetriFunctor(EPI_OB_MAP, EPI_HOM_MAP)
            sir_net = functor(transmission >> recovery).net

    """

    def __init__(self, ob_map: Dict[str, int], hom_map: Dict[str, OpenPetriNet]):
        self.ob_map = dict(ob_map)
        self.hom_map = dict(hom_map)

    def __call__(self, expr: HomExpr) -> OpenPetriNet:
        open_net = self.apply(expr)
        logger.debug(
            "Mapped %s onto a net with %s places and %s transitions",
            expr,
            open_net.net.num_places,
            open_net.net.num_transitions,
        )
        return open_net

    def apply(self, expr: HomExpr) -> OpenPetriNet:
        """
        Returns the open Petri net for the given morphism expression.
        """
        expr_type = type(expr)
        if expr_type is Generator:
            return self._apply_generator(expr)
        elif expr_type is Compose:
            open_nets = [self.apply(p) for p in expr.parts]
            return reduce(lambda a, b: a.compose(b), open_nets)
        elif expr_type is Otimes:
            open_nets = [self.apply(p) for p in expr.parts]
            return reduce(lambda a, b: a.otimes(b), open_nets)
        elif expr_type is Id:
            return self._label(OpenPetriNet.identity(self._num_places(expr.obs)), expr)
        elif expr_type is Braid:
            left, right = expr.obs
            num_left, num_right = self._num_places([left]), self._num_places([right])
            return self._label(OpenPetriNet.braid(num_left, num_right), expr)
        elif expr_type is Copy:
            return self._label(OpenPetriNet.copy(self._num_places(expr.obs), expr.n), expr)
        elif expr_type is Merge:
            return self._label(OpenPetriNet.merge(self._num_places(expr.obs), expr.n), expr)
        elif expr_type is Delete:
            return self._label(OpenPetriNet.delete(self._num_places(expr.obs)), expr)
        elif expr_type is Create:
            return self._label(OpenPetriNet.create(self._num_places(expr.obs)), expr)
        else:
            raise ValueError(f"Cannot map expression of type {expr_type.__name__}: {expr}")

    def _num_places(self, obs) -> int:
        num_places = 0
        for ob in obs:
            if ob.name not in self.ob_map:
                raise KeyError(f"No place count supplied for object '{ob.name}'.")
            num_places += self.ob_map[ob.name]

        return num_places

    def _apply_generator(self, gen: Generator) -> OpenPetriNet:
        if gen.name not in self.hom_map:
            raise KeyError(f"No open Petri net template supplied for morphism '{gen.name}'.")

        template = self.hom_map[gen.name]
        for leg_name, leg, obs in (("input", template.dom, gen.dom), ("output", template.codom, gen.codom)):
            expected = self._num_places(obs)
            if len(leg) != expected:
                msg = f"Template for '{gen.name}' has {len(leg)} {leg_name} places, but its type needs {expected}."
                raise ValueError(msg)

        net = template.net
        num_transitions = net.num_transitions
        transitions = []
        for t in net.transitions:
            if num_transitions == 1:
                name = gen.name
            else:
                name = f"{gen.name}_{t.name}"
            transitions.append(t.relabel(range(net.num_places), name=name))

        open_net = OpenPetriNet(
            PetriNet(list(net.place_labels), transitions), template.dom, template.codom
        )
        return self._label(open_net, gen)

    def _label(self, open_net: OpenPetriNet, expr: HomExpr) -> OpenPetriNet:
        """
        Labels the leg places of an open net with the names of the objects they represent.
        """
        labels = list(open_net.net.place_labels)
        for leg, obs in ((open_net.dom, expr.dom), (open_net.codom, expr.codom)):
            leg_labels = self._expand_labels(obs)
            for place, label in zip(leg, leg_labels):
                if labels[place] is None:
                    labels[place] = label
                elif labels[place] != label:
                    msg = f"Place {place} of '{expr}' is used as both '{labels[place]}' and '{label}'."
                    raise ValueError(msg)

        net = PetriNet(labels, open_net.net.transitions)
        return OpenPetriNet(net, open_net.dom, open_net.codom)

    def _expand_labels(self, obs):
        labels = []
        for ob in obs:
            num_places = self._num_places([ob])
            if num_places == 1:
                labels.append(ob.name)
            else:
                labels += [f"{ob.name}_{i}" for i in range(num_places)]

        return labels

