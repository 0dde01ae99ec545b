from algepi.epidemiology import I, death, exposure, illness, recovery, transmission
from algepi.theory import id, mcopy, mmerge
from algepi.wiring import WiringDiagram


def test_sir_wiring_diagram():
    diagram = WiringDiagram(transmission >> recovery)
    assert diagram.inputs == ["S", "I"]
    assert diagram.outputs == ["R"]
    assert diagram.boxes() == ["transmission", "recovery"]
    assert sorted(diagram.wires()) == sorted(
        [
            ("input", "transmission", "S"),
            ("input", "transmission", "I"),
            ("transmission", "recovery", "I"),
            ("recovery", "output", "R"),
        ]
    )


def test_wire_ports():
    diagram = WiringDiagram(transmission >> recovery)
    ports = [
        (d["source_port"], d["dest_port"])
        for u, v, d in diagram.graph.edges(data=True)
        if u == diagram.INPUT
    ]
    assert sorted(ports) == [(0, 0), (1, 1)]


def test_seir_wiring_diagram():
    diagram = WiringDiagram(exposure >> (illness @ id(I)) >> mmerge(I) >> recovery)
    assert diagram.boxes() == ["exposure", "illness", "recovery"]
    kinds = [d["kind"] for _, d in diagram.graph.nodes(data=True)]
    # Two outer nodes, three boxes, an identity junction and a merge junction.
    assert kinds.count("outer") == 2
    assert kinds.count("box") == 3
    assert kinds.count("junction") == 2
    assert ("exposure", "illness", "E") in diagram.wires()
    # The infectious wire from exposure passes through the identity junction.
    assert ("exposure", "I", "I") in diagram.wires()
    assert diagram.outputs == ["R"]


def test_copy_wiring_diagram():
    diagram = WiringDiagram(mcopy(I) >> (recovery @ death))
    assert diagram.boxes() == ["recovery", "death"]
    assert diagram.outputs == ["R", "D"]
    junction_wires = [w for w in diagram.wires() if w[0] == "I"]
    assert sorted(junction_wires) == [("I", "death", "I"), ("I", "recovery", "I")]
    assert diagram.graph.number_of_edges() == 5
