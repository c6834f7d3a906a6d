"""Graph model — nodes, edges, roots and the adjacency built from them.

The caller-facing types (``Node``, ``Edge``, ``Graph``) are frozen
dataclasses: every later stage works on derived values and never mutates the
caller's graph. ``GraphModel`` wraps a ``networkx.MultiDiGraph`` holding only
the edges whose endpoints exist; the rest are reported as dangling.

Duplicate node ids are a precondition violation. The model does not detect
them; the last definition of an id wins wherever nodes are indexed by id.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from chronos_diagram.errors import GraphValidationError

logger = logging.getLogger(__name__)


# ─── Caller-facing types ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Node:
    """A diagram node. ``width``/``height`` override the label-derived size."""

    id: str
    label: str | None = None
    width: float | None = None
    height: float | None = None

    @property
    def display_label(self) -> str:
        if self.label is None:
            return self.id
        # Non-string labels render as empty text.
        return self.label if isinstance(self.label, str) else ""


@dataclass(frozen=True)
class Edge:
    """A directed edge. ``id`` and ``label`` are filled in before layout."""

    from_id: str
    to_id: str
    id: str | None = None
    label: str | None = None
    meta: Any = None


@dataclass(frozen=True)
class Graph:
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    roots: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples.
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        object.__setattr__(self, "roots", tuple(self.roots or ()))
        for idx, node in enumerate(self.nodes):
            if not isinstance(node, Node):
                raise GraphValidationError(f"node[{idx}]", f"expected Node, got {type(node).__name__}")
            _require_id(f"node[{idx}]", "id", node.id)
        for idx, edge in enumerate(self.edges):
            if not isinstance(edge, Edge):
                raise GraphValidationError(f"edge[{idx}]", f"expected Edge, got {type(edge).__name__}")
            entity = f"edge[{idx}] ({edge.from_id!r} -> {edge.to_id!r})"
            _require_id(entity, "from", edge.from_id)
            _require_id(entity, "to", edge.to_id)
            _optional_str(entity, "id", edge.id)
            _optional_str(entity, "label", edge.label)
        for idx, root in enumerate(self.roots):
            _require_id(f"roots[{idx}]", "root", root)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Graph:
        """Parse the JSON shape ``{"nodes": [...], "edges": [...], "roots": [...]}``.

        Nodes take ``id``, ``label`` and ``w``/``width``, ``h``/``height``.
        Edges take ``from``, ``to``, ``id``, ``label`` and ``meta``.
        """
        if not isinstance(data, Mapping):
            raise GraphValidationError("graph", f"expected a mapping, got {type(data).__name__}")

        raw_nodes = data.get("nodes") or []
        raw_edges = data.get("edges") or []
        if not isinstance(raw_nodes, Sequence) or isinstance(raw_nodes, str):
            raise GraphValidationError("graph", "'nodes' must be a list")
        if not isinstance(raw_edges, Sequence) or isinstance(raw_edges, str):
            raise GraphValidationError("graph", "'edges' must be a list")

        nodes: list[Node] = []
        for idx, raw in enumerate(raw_nodes):
            entity = f"node[{idx}]"
            if not isinstance(raw, Mapping):
                raise GraphValidationError(entity, "expected an object")
            if "id" not in raw:
                raise GraphValidationError(entity, "missing required field 'id'")
            nodes.append(
                Node(
                    id=raw["id"],
                    label=raw.get("label"),
                    width=_optional_size(entity, "width", raw.get("width", raw.get("w"))),
                    height=_optional_size(entity, "height", raw.get("height", raw.get("h"))),
                )
            )

        edges: list[Edge] = []
        for idx, raw in enumerate(raw_edges):
            if not isinstance(raw, Mapping):
                raise GraphValidationError(f"edge[{idx}]", "expected an object")
            entity = f"edge[{idx}] ({raw.get('from', '?')} -> {raw.get('to', '?')})"
            for key in ("from", "to"):
                if key not in raw:
                    raise GraphValidationError(entity, f"missing required field {key!r}")
            edges.append(
                Edge(
                    from_id=raw["from"],
                    to_id=raw["to"],
                    id=raw.get("id"),
                    label=raw.get("label"),
                    meta=raw.get("meta"),
                )
            )

        roots = data.get("roots") or ()
        if isinstance(roots, str) or not isinstance(roots, Sequence):
            raise GraphValidationError("graph", "'roots' must be a list of node ids")
        return cls(nodes=tuple(nodes), edges=tuple(edges), roots=tuple(roots))

    @classmethod
    def from_fsm(
        cls,
        states: Iterable[str],
        transitions: Iterable[tuple[str, str, str]],
        initial: str | None = None,
    ) -> Graph:
        """Build a graph from state names and ``(source, target, name)`` transitions."""
        nodes = tuple(Node(id=state, label=state) for state in states)
        edges = tuple(Edge(from_id=src, to_id=tgt, label=name) for src, tgt, name in transitions)
        return cls(nodes=nodes, edges=edges, roots=(initial,) if initial else ())


def _require_id(entity: str, key: str, value: object) -> None:
    if not isinstance(value, str) or not value:
        raise GraphValidationError(entity, f"{key!r} must be a non-empty string, got {value!r}")


def _optional_str(entity: str, key: str, value: object) -> None:
    if value is not None and not isinstance(value, str):
        raise GraphValidationError(entity, f"{key!r} must be a string, got {value!r}")


def _optional_size(entity: str, key: str, value: object) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise GraphValidationError(entity, f"{key!r} must be a non-negative number, got {value!r}")
    return value


# ─── Dangling references ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class DanglingReference:
    """An edge endpoint naming a node id that is not in the node list."""

    edge_index: int
    edge_id: str | None
    missing: tuple[str, ...]

    def __str__(self) -> str:
        name = self.edge_id or f"edge[{self.edge_index}]"
        return f"{name} -> unknown {', '.join(self.missing)}"


def find_dangling_references(graph: Graph) -> list[DanglingReference]:
    """List every edge whose ``from`` or ``to`` is not a known node id."""
    known = {node.id for node in graph.nodes}
    refs: list[DanglingReference] = []
    for idx, edge in enumerate(graph.edges):
        missing = tuple(dict.fromkeys(nid for nid in (edge.from_id, edge.to_id) if nid not in known))
        if missing:
            refs.append(DanglingReference(edge_index=idx, edge_id=edge.id, missing=missing))
    return refs


# ─── Adjacency ────────────────────────────────────────────────────────────────


@dataclass
class GraphModel:
    """Adjacency over the valid part of a graph.

    Attributes:
        digraph: MultiDiGraph; node attribute ``data`` is the ``Node``, edge
            key is the edge's index in ``graph.edges``, edge attribute
            ``data`` is the ``Edge``.
        node_ids: Unique node ids in first-appearance order.
        edges: Kept edges, in input order.
        dropped: Edges dropped for referencing unknown nodes.
    """

    digraph: nx.MultiDiGraph
    node_ids: list[str]
    edges: list[Edge]
    dropped: list[Edge] = field(default_factory=list)

    @classmethod
    def build(cls, graph: Graph) -> GraphModel:
        g: nx.MultiDiGraph = nx.MultiDiGraph()
        for node in graph.nodes:
            g.add_node(node.id, data=node)

        kept: list[Edge] = []
        dropped: list[Edge] = []
        for idx, edge in enumerate(graph.edges):
            if edge.from_id not in g or edge.to_id not in g:
                logger.warning(
                    "dropping edge %s: %s -> %s references an unknown node",
                    edge.id or f"#{idx}",
                    edge.from_id,
                    edge.to_id,
                )
                dropped.append(edge)
                continue
            g.add_edge(edge.from_id, edge.to_id, key=idx, data=edge)
            kept.append(edge)

        return cls(digraph=g, node_ids=list(g.nodes), edges=kept, dropped=dropped)

    def node(self, node_id: str) -> Node:
        return self.digraph.nodes[node_id]["data"]

    def outgoing(self, node_id: str) -> list[str]:
        """Target ids of every outgoing edge (one entry per parallel edge)."""
        return [tgt for _, tgt in self.digraph.out_edges(node_id)]

    def incoming(self, node_id: str) -> list[str]:
        return [src for src, _ in self.digraph.in_edges(node_id)]

    def out_degree(self, node_id: str) -> int:
        return self.digraph.out_degree(node_id)

    def in_degree(self, node_id: str) -> int:
        return self.digraph.in_degree(node_id)
