from algepi.epidemiology import decorate_epi, recovery, transmission
from algepi.flowchart import create_petri_diagram, create_wiring_diagram
from algepi.wiring import WiringDiagram


def test_petri_diagram():
    net = decorate_epi(transmission >> recovery)
    diagram = create_petri_diagram(net, name="sir")
    source = diagram.source
    assert diagram.name == "sir"
    for label in ["S", "I", "R", "transmission", "recovery"]:
        assert f"label={label}" in source

    assert "place_0 -> transition_0" in source
    assert "place_1 -> transition_0" in source
    # Two infectious people come out of each transmission event.
    assert "transition_0 -> place_1 [label=2]" in source
    assert "place_1 -> transition_1" in source
    assert "transition_1 -> place_2" in source
    assert "shape=circle" in source
    assert "shape=box" in source


def test_wiring_diagram():
    wiring = WiringDiagram(transmission >> recovery)
    diagram = create_wiring_diagram(wiring, name="sir_wiring")
    source = diagram.source
    assert "label=transmission" in source
    assert "label=recovery" in source
    assert "label=input" in source
    assert "label=output" in source
    assert source.count("->") == 4


def test_diagram_render(monkeypatch, tmp_path):
    rendered = []

    def _render(self, directory=None, cleanup=False, **kwargs):
        rendered.append((self.name, directory, cleanup))
        return f"{directory}/{self.name}.png"

    monkeypatch.setattr("graphviz.Digraph.render", _render)
    net = decorate_epi(transmission >> recovery)
    create_petri_diagram(net, name="sir", directory=str(tmp_path))
    assert rendered == [("sir", str(tmp_path), True)]
