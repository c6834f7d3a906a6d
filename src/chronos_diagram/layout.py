"""Layout module — layered layout pipeline.

Phases:
  1. Back-edge classification (depth-first, roots first)
  2. Layer assignment (longest-path relaxation from the roots)
  3. Coordinate assignment (even slots per layer, or packed rows)
  4. Edge routing (one cubic Bézier per edge, center to center)

Every phase is a pure function of its inputs; nothing here touches the
caller's graph.
"""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass, field

import networkx as nx

from chronos_diagram.config import Options
from chronos_diagram.graph import Edge, Graph, GraphModel
from chronos_diagram.labels import CounterIdSource, IdSource, normalize_edges

logger = logging.getLogger(__name__)

# ─── Geometry constants ───────────────────────────────────────────────────────

MIN_TEXT_WIDTH: int = 24  # px, floor for the approximate label width
MIN_NODE_HEIGHT: int = 28  # px
MIN_CHAR_WIDTH: int = 6  # px
CHAR_WIDTH_RATIO: float = 0.6  # average glyph width / font size
NODE_HEIGHT_RATIO: float = 2.5  # node height / font size
CURVATURE_MIN: float = 0.2
CURVATURE_MAX: float = 0.6
CONTROL_DY_RATIO: float = 0.25


def round_half_up(value: float) -> int:
    """Round like JavaScript's ``Math.round`` (halves go up)."""
    return math.floor(value + 0.5)


def fmt_num(value: float) -> str:
    """Format a coordinate: integral values without ``.0``, others shortest repr."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ─── Back-edge Classification ─────────────────────────────────────────────────

_ON_STACK = 1
_DONE = 2


def classify_back_edges(model: GraphModel, start_order: list[str]) -> tuple[set[tuple[str, str]], list[str]]:
    """Depth-first traversal marking back-edges.

    Starts a traversal from each node of ``start_order`` not yet visited.
    An edge u → v is a back-edge when v is still on the traversal stack
    (self-loops included). Every cycle contains at least one back-edge, so
    the graph without them is a DAG.

    Returns:
        (back_edges, finish_order) — back-edges as (src, tgt) pairs (parallel
        edges share a pair), and nodes in the order they finished. Reversed,
        ``finish_order`` is a topological order of the DAG.
    """
    state: dict[str, int] = {}
    back_edges: set[tuple[str, str]] = set()
    finish_order: list[str] = []

    for start in start_order:
        if start in state:
            continue
        state[start] = _ON_STACK
        stack = [(start, iter(model.outgoing(start)))]
        while stack:
            node, successors = stack[-1]
            descended = False
            for succ in successors:
                seen = state.get(succ)
                if seen is None:
                    state[succ] = _ON_STACK
                    stack.append((succ, iter(model.outgoing(succ))))
                    descended = True
                    break
                if seen == _ON_STACK:
                    back_edges.add((node, succ))
            if not descended:
                stack.pop()
                state[node] = _DONE
                finish_order.append(node)

    return back_edges, finish_order


# ─── Layer Assignment ─────────────────────────────────────────────────────────


def resolve_roots(model: GraphModel, roots: tuple[str, ...] | list[str]) -> list[str]:
    """Explicit roots that exist in the graph, or every source node.

    A source has no incoming edge and at least one outgoing edge; isolated
    nodes are not roots and end up appended as unreached.
    """
    if roots:
        known = [r for r in dict.fromkeys(roots) if r in model.digraph]
        ignored = [r for r in roots if r not in model.digraph]
        if ignored:
            logger.warning("ignoring unknown root id(s): %s", ", ".join(map(str, ignored)))
        if known:
            return known
    return [nid for nid in model.node_ids if model.in_degree(nid) == 0 and model.out_degree(nid) > 0]


class LayerAssignment:
    """Result of layer assignment: each node is assigned a layer (rank).

    Attributes:
        layers: Maps node id → layer index.
        ordering: One list of node ids per layer, by descending out-degree.
        layer_count: Total number of layers (at least 1).
        back_edges: Edges excluded from ranking because they close a cycle.
        unreached: Nodes not reachable from any root, in append order.
    """

    def __init__(
        self,
        layers: dict[str, int],
        ordering: list[list[str]],
        back_edges: set[tuple[str, str]],
        unreached: list[str],
    ) -> None:
        self.layers = layers
        self.ordering = ordering
        self.layer_count = len(ordering)
        self.back_edges = back_edges
        self.unreached = unreached

    @classmethod
    def assign(cls, model: GraphModel, roots: tuple[str, ...] | list[str] = ()) -> LayerAssignment:
        """Rank nodes by longest path from the root set.

        Roots start at rank 0 on a work queue. Each dequeued node u proposes
        ``rank(u) + 1`` to its successors over non-back edges; a successor
        takes the candidate when it has no rank or the candidate is strictly
        greater, and is queued again. The queue pops in topological order, so
        each node is finalized before it proposes and the loop is
        O((V + E) log V).

        Nodes no root reaches are appended one per new layer after the
        deepest rank seen, in topological order (ties keep input order). They then propagate along
        their own edges so that successors already ranked still sit below
        them; layers emptied by that are dropped.
        """
        root_ids = resolve_roots(model, roots)
        root_set = set(root_ids)
        start_order = root_ids + [nid for nid in model.node_ids if nid not in root_set]
        back_edges, finish_order = classify_back_edges(model, start_order)
        topo_pos = {nid: pos for pos, nid in enumerate(reversed(finish_order))}

        layers: dict[str, int] = {root: 0 for root in root_ids}
        _relax(model, layers, root_ids, back_edges, topo_pos)

        # Known limitation: one extra layer per unreached node.
        max_layer = max(layers.values(), default=-1)
        unreached = _unreached_in_order(model, layers, back_edges)
        for nid in unreached:
            max_layer += 1
            layers[nid] = max_layer
        if unreached:
            logger.debug("appended %d unreached node(s) after layer %d", len(unreached), max_layer - len(unreached))
            _relax(model, layers, unreached, back_edges, topo_pos)

        used = sorted(set(layers.values()))
        if used != list(range(len(used))):
            compact = {layer: idx for idx, layer in enumerate(used)}
            layers = {nid: compact[layer] for nid, layer in layers.items()}

        ordering: list[list[str]] = [[] for _ in range(max(1, len(used)))]
        for nid in model.node_ids:
            ordering[layers[nid]].append(nid)
        for ids in ordering:
            ids.sort(key=lambda nid: -model.out_degree(nid))

        return cls(layers=layers, ordering=ordering, back_edges=back_edges, unreached=unreached)


def _unreached_in_order(model: GraphModel, layers: dict[str, int], back_edges: set[tuple[str, str]]) -> list[str]:
    """Unranked nodes in topological order over non-back edges, input order breaking ties."""
    index = {nid: i for i, nid in enumerate(model.node_ids)}
    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(nid for nid in model.node_ids if nid not in layers)
    for src, tgt in model.digraph.edges():
        if src in dag and tgt in dag and (src, tgt) not in back_edges:
            dag.add_edge(src, tgt)
    return list(nx.lexicographical_topological_sort(dag, key=index.__getitem__))


def _relax(
    model: GraphModel,
    layers: dict[str, int],
    seeds: list[str],
    back_edges: set[tuple[str, str]],
    topo_pos: dict[str, int],
) -> None:
    """Longest-path relaxation from ``seeds`` over non-back edges, in place."""
    queue: list[tuple[int, str]] = []
    queued: set[str] = set()
    for seed in seeds:
        heapq.heappush(queue, (topo_pos[seed], seed))
        queued.add(seed)

    while queue:
        _, cur = heapq.heappop(queue)
        queued.discard(cur)
        candidate = layers[cur] + 1
        for succ in model.outgoing(cur):
            if (cur, succ) in back_edges:
                continue
            prev = layers.get(succ)
            if prev is None or candidate > prev:
                layers[succ] = candidate
                if succ not in queued:
                    heapq.heappush(queue, (topo_pos[succ], succ))
                    queued.add(succ)


# ─── Coordinate Assignment ────────────────────────────────────────────────────


@dataclass
class LayoutNode:
    """A positioned node. ``x``/``y`` are the box center, in pixels."""

    id: str
    label: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def top(self) -> float:
        return self.y - self.height / 2


def approx_text_width(text: str, avg_char_px: float = 7) -> int:
    """Approximate rendered width of ``text``; never below ``MIN_TEXT_WIDTH``."""
    return max(MIN_TEXT_WIDTH, math.ceil(len(text) * avg_char_px))


def node_dimensions(label: str, options: Options, width: float | None = None, height: float | None = None) -> tuple[float, float]:
    """(width, height) of a node box.

    Width is the explicit width or the approximate label width, plus the
    node padding on both sides. Height is the explicit height or
    ``max(28, 2.5 × font size)``.
    """
    avg_char = max(MIN_CHAR_WIDTH, round_half_up(options.font_size * CHAR_WIDTH_RATIO))
    inner = width if width is not None else approx_text_width(label, avg_char)
    w = inner + options.node_padding * 2
    h = height if height is not None else max(MIN_NODE_HEIGHT, round_half_up(options.font_size * NODE_HEIGHT_RATIO))
    return w, h


def assign_coordinates(model: GraphModel, la: LayerAssignment, options: Options) -> list[LayoutNode]:
    """Assign pixel centers to every node, in node input order.

    Layers are spread over the canvas height between the paddings:
    ``y = pad + layer × (height − 2·pad) / max(1, layer_count − 1)``, so a
    single layer sits at the top padding.

    ``placement="slots"`` divides the usable width of each layer into equal
    slots and centers node i in slot i, whatever the node widths (wide
    labels in a crowded layer can overlap). ``placement="packed"`` lays the
    real node widths left to right with ``node_h_gap`` between them, row
    centered, and steps layers by at most tallest node + ``node_v_gap``.
    """
    pad = options.canvas_padding
    sizes: dict[str, tuple[float, float]] = {}
    for nid in model.node_ids:
        node = model.node(nid)
        sizes[nid] = node_dimensions(node.display_label, options, node.width, node.height)

    band = (options.height - pad * 2) / max(1, la.layer_count - 1)
    if options.placement == "packed":
        tallest = max((h for _, h in sizes.values()), default=0)
        band = min(band, tallest + options.node_v_gap)

    usable_w = options.width - pad * 2
    positions: dict[str, LayoutNode] = {}
    for layer_idx, ids in enumerate(la.ordering):
        y = pad + layer_idx * band
        if options.placement == "packed":
            total = sum(sizes[nid][0] for nid in ids) + options.node_h_gap * max(0, len(ids) - 1)
            cursor = max(pad, (options.width - total) / 2)
        else:
            slot = usable_w / max(1, len(ids))
        for order, nid in enumerate(ids):
            w, h = sizes[nid]
            if options.placement == "packed":
                x = cursor + w / 2
                cursor += w + options.node_h_gap
            else:
                x = pad + slot * (order + 0.5)
            positions[nid] = LayoutNode(
                id=nid,
                label=model.node(nid).display_label,
                layer=layer_idx,
                order=order,
                x=x,
                y=y,
                width=w,
                height=h,
            )

    return [positions[nid] for nid in model.node_ids]


# ─── Edge Routing (Cubic Bézier) ──────────────────────────────────────────────


@dataclass
class Point:
    """A 2D point in pixels."""

    x: float
    y: float


@dataclass
class RoutedEdge:
    """An edge routed as one cubic Bézier from source center to target center."""

    id: str
    from_id: str
    to_id: str
    label: str
    source: Point
    control1: Point
    control2: Point
    target: Point

    @property
    def path_data(self) -> str:
        s, c1, c2, t = self.source, self.control1, self.control2, self.target
        return (
            f"M {fmt_num(s.x)} {fmt_num(s.y)} "
            f"C {fmt_num(c1.x)} {fmt_num(c1.y)}, {fmt_num(c2.x)} {fmt_num(c2.y)}, "
            f"{fmt_num(t.x)} {fmt_num(t.y)}"
        )


def edge_curvature(dx: float, dy: float) -> float:
    """``clamp(dx / (dx + dy + 1), 0.2, 0.6)`` for absolute deltas dx, dy."""
    return min(CURVATURE_MAX, max(CURVATURE_MIN, dx / (dx + dy + 1)))


def compute_control_points(source: Point, target: Point) -> tuple[Point, Point]:
    """Control points of the S-curve between two centers.

    The horizontal offset follows the signed x delta scaled by the
    curvature; the vertical offset is a quarter of the absolute y delta,
    down from the source and up from the target.
    """
    dx = abs(target.x - source.x)
    dy = abs(target.y - source.y)
    curvature = edge_curvature(dx, dy)
    c1 = Point(x=source.x + (target.x - source.x) * curvature, y=source.y + dy * CONTROL_DY_RATIO)
    c2 = Point(x=target.x - (target.x - source.x) * curvature, y=target.y - dy * CONTROL_DY_RATIO)
    return c1, c2


def route_edges(edges: list[Edge], layout_nodes: list[LayoutNode]) -> list[RoutedEdge]:
    """Route every edge whose endpoints were laid out, in input order."""
    node_map: dict[str, LayoutNode] = {n.id: n for n in layout_nodes}
    routes: list[RoutedEdge] = []
    for edge in edges:
        src = node_map.get(edge.from_id)
        tgt = node_map.get(edge.to_id)
        if src is None or tgt is None:
            continue
        source = Point(x=src.x, y=src.y)
        target = Point(x=tgt.x, y=tgt.y)
        c1, c2 = compute_control_points(source, target)
        routes.append(
            RoutedEdge(
                id=edge.id or "",
                from_id=edge.from_id,
                to_id=edge.to_id,
                label=edge.label or "",
                source=source,
                control1=c1,
                control2=c2,
                target=target,
            )
        )
    return routes


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


@dataclass
class LayoutResult:
    """Self-contained layout output — everything renderers need."""

    nodes: list[LayoutNode]
    edges: list[RoutedEdge]
    layers: LayerAssignment
    options: Options
    dropped: list[Edge] = field(default_factory=list)
    token: str = ""  # unique per call, scopes ids inside the document

    @property
    def width(self) -> float:
        return self.options.width

    @property
    def height(self) -> float:
        return self.options.height


def full_layout(graph: Graph, options: Options | None = None, id_source: IdSource | None = None) -> LayoutResult:
    """Run the full layout pipeline and return positioned nodes + routed edges.

    ``id_source`` defaults to a fresh ``CounterIdSource`` so identical input
    gives identical output.
    """
    options = options or Options()
    id_source = id_source or CounterIdSource()

    edges = normalize_edges(graph.edges, options, id_source)
    model = GraphModel.build(Graph(nodes=graph.nodes, edges=edges, roots=graph.roots))
    la = LayerAssignment.assign(model, graph.roots)
    layout_nodes = assign_coordinates(model, la, options)
    routed = route_edges(model.edges, layout_nodes)
    logger.debug(
        "laid out %d node(s) in %d layer(s), %d edge(s), %d dropped",
        len(layout_nodes),
        la.layer_count,
        len(routed),
        len(model.dropped),
    )
    return LayoutResult(
        nodes=layout_nodes,
        edges=routed,
        layers=la,
        options=options,
        dropped=model.dropped,
        token=id_source.next_token(),
    )
