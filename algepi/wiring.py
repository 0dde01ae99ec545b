"""
Wiring diagrams: a graph view of how the morphisms in an expression connect to each other.
"""
from itertools import count
from typing import List, Tuple

import networkx

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

# A port is a node in the diagram graph, plus the index of the port on that node.
Port = Tuple[str, int]


class WiringDiagram:
    """
    A wiring diagram built from a morphism expression.

    The diagram is stored as a ``networkx.MultiDiGraph`` with three kinds of nodes:

    - "box" nodes, one for each use of a named morphism,
    - "junction" nodes, where wires are passed through, split, merged or crossed,
    - "outer" nodes, which form the boundary of the diagram ("input" and "output").

    Each edge is a wire, labelled with the object type that flows along it.

    Args:
        expr: The morphism expression to draw.

    """

    INPUT = "input"
    OUTPUT = "output"

    def __init__(self, expr: HomExpr):
        self.expr = expr
        self.graph = networkx.MultiDiGraph()
        self._ids = count()
        self.graph.add_node(self.INPUT, kind="outer", label="input")
        self.graph.add_node(self.OUTPUT, kind="outer", label="output")
        in_ports, out_ports = self._build(expr)
        for idx, (port, ob) in enumerate(zip(in_ports, expr.dom)):
            self._add_wire((self.INPUT, idx), port, ob.name)
        for idx, (port, ob) in enumerate(zip(out_ports, expr.codom)):
            self._add_wire(port, (self.OUTPUT, idx), ob.name)

    @property
    def inputs(self) -> List[str]:
        return [o.name for o in self.expr.dom]

    @property
    def outputs(self) -> List[str]:
        return [o.name for o in self.expr.codom]

    def boxes(self) -> List[str]:
        """
        Returns the labels of the box nodes in the order they were added.
        """
        return [d["label"] for _, d in self.graph.nodes(data=True) if d["kind"] == "box"]

    def wires(self) -> List[Tuple[str, str, str]]:
        """
        Returns every wire as a (source label, destination label, object type) triple.
        """
        nodes = self.graph.nodes
        return [
            (nodes[u]["label"], nodes[v]["label"], d["ob"])
            for u, v, d in self.graph.edges(data=True)
        ]

    def _add_node(self, kind: str, label: str) -> str:
        node = f"{kind}_{next(self._ids)}"
        self.graph.add_node(node, kind=kind, label=label)
        return node

    def _add_wire(self, source: Port, dest: Port, ob_name: str):
        (u, u_port), (v, v_port) = source, dest
        self.graph.add_edge(u, v, ob=ob_name, source_port=u_port, dest_port=v_port)

    def _build(self, expr: HomExpr) -> Tuple[List[Port], List[Port]]:
        """
        Adds the nodes for an expression to the graph.
        Returns the dangling input ports and output ports of the sub-diagram.
        """
        expr_type = type(expr)
        if expr_type is Generator:
            node = self._add_node("box", expr.name)
            in_ports = [(node, i) for i in range(len(expr.dom))]
            out_ports = [(node, i) for i in range(len(expr.codom))]
            return in_ports, out_ports

        elif expr_type is Compose:
            in_ports, out_ports = self._build(expr.parts[0])
            for part in expr.parts[1:]:
                next_in, next_out = self._build(part)
                for source, dest, ob in zip(out_ports, next_in, part.dom):
                    self._add_wire(source, dest, ob.name)
                out_ports = next_out

            return in_ports, out_ports

        elif expr_type is Otimes:
            in_ports, out_ports = [], []
            for part in expr.parts:
                part_in, part_out = self._build(part)
                in_ports += part_in
                out_ports += part_out

            return in_ports, out_ports

        elif expr_type in (Id, Braid):
            junctions = [self._add_node("junction", ob.name) for ob in expr.obs]
            in_ports = [(j, 0) for j in junctions]
            out_ports = in_ports if expr_type is Id else list(reversed(in_ports))
            return in_ports, out_ports

        elif expr_type is Copy:
            junction = self._add_node("junction", expr.obs[0].name)
            return [(junction, 0)], [(junction, i) for i in range(expr.n)]

        elif expr_type is Merge:
            junction = self._add_node("junction", expr.obs[0].name)
            return [(junction, i) for i in range(expr.n)], [(junction, 0)]

        elif expr_type is Delete:
            junction = self._add_node("junction", expr.obs[0].name)
            return [(junction, 0)], []

        elif expr_type is Create:
            junction = self._add_node("junction", expr.obs[0].name)
            return [], [(junction, 0)]

        else:
            raise ValueError(f"Cannot draw expression of type {expr_type.__name__}: {expr}")

    def __repr__(self):
        return f"<WiringDiagram {self.expr}: {len(self.boxes())} boxes>"
