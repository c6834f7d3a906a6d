"""Layered directed-graph layout and SVG diagram rendering."""

from chronos_diagram.api import RenderOutcome, layout_graph, render, render_svg
from chronos_diagram.config import Options
from chronos_diagram.encoding import to_data_uri
from chronos_diagram.errors import ConfigError, DanglingReferenceError, DiagramError, GraphValidationError
from chronos_diagram.graph import Edge, Graph, Node
from chronos_diagram.labels import CounterIdSource, IdSource, RandomIdSource

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "CounterIdSource",
    "DanglingReferenceError",
    "DiagramError",
    "Edge",
    "Graph",
    "GraphValidationError",
    "IdSource",
    "Node",
    "Options",
    "RandomIdSource",
    "RenderOutcome",
    "layout_graph",
    "render",
    "render_svg",
    "to_data_uri",
]
