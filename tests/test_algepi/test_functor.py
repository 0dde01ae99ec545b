import pytest

from algepi.functor import PetriFunctor
from algepi.model import PetriModel
from algepi.petri import OpenPetriNet, PetriNet, Transition
from algepi.solver import SimulationType
from algepi.theory import Ob, Presentation, braid, id, mcopy, mmerge


def _build_functor():
    theory = Presentation("Chemistry")
    A, B = theory.add_obs("A", "B")
    homs = {
        "convert": theory.add_hom("convert", A, B),
        "bind": theory.add_hom("bind", [A, A], [B]),
        "cycle": theory.add_hom("cycle", A, A),
    }
    convert_petri = OpenPetriNet(PetriNet(2, [Transition({0: 1}, {1: 1})]), dom=[0], codom=[1])
    bind_petri = OpenPetriNet(
        PetriNet(3, [Transition({0: 1, 1: 1}, {2: 1})]), dom=[0, 1], codom=[2]
    )
    # A template with two transitions, each named.
    cycle_petri = OpenPetriNet(
        PetriNet(
            2,
            [
                Transition({0: 1}, {1: 1}, name="forward"),
                Transition({1: 1}, {0: 1}, name="backward"),
            ],
        ),
        dom=[0],
        codom=[0],
    )
    functor = PetriFunctor(
        ob_map={"A": 1, "B": 1},
        hom_map={"convert": convert_petri, "bind": bind_petri, "cycle": cycle_petri},
    )
    return functor, (A, B), homs


def test_generator_transitions_named_after_morphism():
    functor, _, homs = _build_functor()
    open_net = functor(homs["convert"])
    assert open_net.net.transition_names == ["convert"]
    assert open_net.net.place_labels == ["A", "B"]


def test_multi_transition_template_names():
    functor, _, homs = _build_functor()
    open_net = functor(homs["cycle"])
    assert open_net.net.transition_names == ["cycle_forward", "cycle_backward"]
    # The hidden place has no object type, so has no label.
    assert open_net.net.place_labels == ["A", None]


def test_templates_are_not_modified():
    functor, _, homs = _build_functor()
    functor(homs["convert"])
    assert functor.hom_map["convert"].net.place_labels == [None, None]
    assert functor.hom_map["convert"].net.transition_names == [None]


def test_compose_generators():
    functor, (A, B), homs = _build_functor()
    open_net = functor(homs["cycle"] >> homs["convert"])
    net = open_net.net
    assert net.place_labels == ["A", None, "B"]
    assert net.transition_names == ["cycle_forward", "cycle_backward", "convert"]
    assert open_net.dom == [0]
    assert open_net.codom == [2]


def test_copy_then_bind_glues_both_inputs():
    functor, (A, B), homs = _build_functor()
    open_net = functor(mcopy(A) >> homs["bind"])
    net = open_net.net
    assert net.place_labels == ["A", "B"]
    assert net.transitions[0].inputs == {0: 2}
    assert net.transitions[0].outputs == {1: 1}


def test_otimes_and_merge():
    functor, (A, B), homs = _build_functor()
    open_net = functor((homs["convert"] @ homs["convert"]) >> mmerge(B))
    net = open_net.net
    assert net.place_labels == ["A", "B", "A"]
    assert open_net.dom == [0, 2]
    assert open_net.codom == [1]


def test_braid_swaps_legs():
    functor, (A, B), homs = _build_functor()
    open_net = functor(braid(B, A) >> (homs["convert"] @ id(B)))
    net = open_net.net
    assert net.place_labels == ["B", "A", "B"]
    assert open_net.dom == [0, 1]
    assert open_net.codom == [2, 0]


def test_missing_template():
    theory = Presentation("Missing")
    A = theory.add_ob("A")
    vanish = theory.add_hom("vanish", A, A)
    functor = PetriFunctor(ob_map={"A": 1}, hom_map={})
    with pytest.raises(KeyError):
        functor(vanish)


def test_missing_object():
    functor, _, _ = _build_functor()
    with pytest.raises(KeyError):
        functor(id(Ob("C")))


def test_template_with_wrong_arity():
    theory = Presentation("Wrong")
    A, B = theory.add_obs("A", "B")
    convert = theory.add_hom("convert", [A, A], B)
    template = OpenPetriNet(PetriNet(2, [Transition({0: 1}, {1: 1})]), dom=[0], codom=[1])
    functor = PetriFunctor(ob_map={"A": 1, "B": 1}, hom_map={"convert": template})
    with pytest.raises(ValueError):
        functor(convert)


def test_copy_then_bind_jump_run_stays_non_negative():
    functor, (A, B), homs = _build_functor()
    model = PetriModel(functor(mcopy(A) >> homs["bind"]), times=(0, 10))
    model.set_initial_population({"A": 3})
    model.set_parameters({"bind": 1.0})
    model.run(method=SimulationType.JUMP, seed=1)
    assert (model.outputs >= 0).all()
    assert model.outputs[-1].tolist() == [1, 1]
