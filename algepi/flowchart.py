"""
Flow diagram creation
"""
import logging
from typing import Optional

from graphviz import Digraph

from algepi.petri import PetriNet
from algepi.wiring import WiringDiagram

logger = logging.getLogger(__name__)

# Colours for the compartments of infectious disease models.
DEFAULT_COLOURS = {
    "S": "#F0FFFF",
    "E": "#A64942",
    "I": "#FE5F55",
    "R": "#FFF1C1",
    "D": "#BBBBBB",
}

PETRI_STYLES = {
    "graph": {"label": "", "fontsize": "16", "rankdir": "LR"},
    "nodes": {"fontname": "Helvetica", "style": "filled", "fillcolor": "#CCDDFF"},
    "edges": {"arrowhead": "open", "fontname": "Courier", "fontsize": "10"},
}

WIRING_STYLES = {
    "graph": {"label": "", "fontsize": "16", "rankdir": "LR"},
    "nodes": {"fontname": "Helvetica"},
    "edges": {"arrowhead": "none", "fontname": "Courier", "fontsize": "10"},
}


def apply_styles(graph: Digraph, styles: dict) -> Digraph:
    graph.graph_attr.update(styles.get("graph", {}))
    graph.node_attr.update(styles.get("nodes", {}))
    graph.edge_attr.update(styles.get("edges", {}))
    return graph


def create_petri_diagram(
    net: PetriNet,
    name: str = "petri_net",
    directory: Optional[str] = None,
) -> Digraph:
    """
    Use graphviz to draw a Petri net, with places as circles and transitions as boxes.
    Arcs are labelled with their multiplicity when more than one token is moved.

    Args:
        net: The Petri net to draw.
        name: The name of the diagram, used as the filename when rendered.
        directory (optional): If supplied, render the diagram as a PNG in this directory.

    """
    diagram = Digraph(name=name, format="png")
    place_nodes = []
    for idx, label in enumerate(net.place_labels):
        node = f"place_{idx}"
        text = label if label is not None else str(idx)
        diagram.node(node, label=text, shape="circle", fillcolor=DEFAULT_COLOURS.get(text, "#F0FFFF"))
        place_nodes.append(node)

    for idx, transition in enumerate(net.transitions):
        node = f"transition_{idx}"
        diagram.node(node, label=transition.name or str(idx), shape="box", fillcolor="#CCDDFF")
        for place, mult in transition.inputs.items():
            diagram.edge(place_nodes[place], node, label=_arc_label(mult))
        for place, mult in transition.outputs.items():
            diagram.edge(node, place_nodes[place], label=_arc_label(mult))

    diagram = apply_styles(diagram, PETRI_STYLES)
    _render(diagram, directory)
    return diagram


def create_wiring_diagram(
    wiring: WiringDiagram,
    name: str = "wiring_diagram",
    directory: Optional[str] = None,
) -> Digraph:
    """
    Use graphviz to draw a wiring diagram, with morphisms as boxes and wires labelled by object type.

    Args:
        wiring: The wiring diagram to draw.
        name: The name of the diagram, used as the filename when rendered.
        directory (optional): If supplied, render the diagram as a PNG in this directory.

    """
    diagram = Digraph(name=name, format="png")
    for node, data in wiring.graph.nodes(data=True):
        kind = data["kind"]
        if kind == "box":
            diagram.node(node, label=data["label"], shape="box", style="filled", fillcolor="#CCDDFF")
        elif kind == "junction":
            diagram.node(node, label="", shape="point", width="0.08")
        else:
            diagram.node(node, label=data["label"], shape="plaintext")

    for u, v, data in wiring.graph.edges(data=True):
        diagram.edge(u, v, label=data["ob"])

    diagram = apply_styles(diagram, WIRING_STYLES)
    _render(diagram, directory)
    return diagram


def _arc_label(mult: int) -> str:
    return str(mult) if mult > 1 else ""


def _render(diagram: Digraph, directory: Optional[str]):
    if directory:
        path = diagram.render(directory=directory, cleanup=True)
        logger.info("Saved diagram to %s", path)
