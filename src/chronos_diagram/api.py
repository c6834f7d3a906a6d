"""Public entry points: layout, render, and the strict/lenient outcome."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from chronos_diagram.config import Options, coerce_options
from chronos_diagram.encoding import to_data_uri
from chronos_diagram.errors import DanglingReferenceError
from chronos_diagram.graph import DanglingReference, Edge, Graph, find_dangling_references
from chronos_diagram.labels import IdSource
from chronos_diagram.layout import LayoutResult, full_layout
from chronos_diagram.renderers.svg import SvgRenderer

logger = logging.getLogger(__name__)

GraphLike = Graph | Mapping[str, Any]
OptionsLike = Options | Mapping[str, Any] | None


def _coerce_graph(graph: GraphLike) -> Graph:
    if isinstance(graph, Graph):
        return graph
    return Graph.from_dict(graph)


@dataclass
class RenderOutcome:
    """Result of ``render``: either a document or the references that rejected it.

    Attributes:
        svg: The rendered document, ``None`` when rejected.
        data_uri: ``svg`` as a data URI, ``None`` when rejected.
        dropped: Edges dropped for dangling references (lenient mode).
        rejected: Dangling references that rejected the layout (strict mode).
    """

    svg: str | None
    data_uri: str | None
    dropped: list[Edge] = field(default_factory=list)
    rejected: list[DanglingReference] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected

    def raise_for_rejection(self) -> None:
        if self.rejected:
            raise DanglingReferenceError(self.rejected)


def layout_graph(graph: GraphLike, options: OptionsLike = None, id_source: IdSource | None = None) -> LayoutResult:
    """Compute layers, positions and edge curves without rendering."""
    return full_layout(_coerce_graph(graph), coerce_options(options), id_source)


def render_svg(graph: GraphLike, options: OptionsLike = None, id_source: IdSource | None = None) -> str:
    """Lay out and render ``graph`` to an SVG string, dropping dangling edges."""
    return SvgRenderer().render(layout_graph(graph, options, id_source))


def render(
    graph: GraphLike,
    options: OptionsLike = None,
    *,
    id_source: IdSource | None = None,
    strict: bool = False,
) -> RenderOutcome:
    """Lay out and render ``graph``, returning the document and its data URI.

    With ``strict=True`` any edge referencing an unknown node rejects the
    whole layout; the outcome then lists the offending references instead of
    carrying a document.
    """
    graph = _coerce_graph(graph)
    if strict:
        refs = find_dangling_references(graph)
        if refs:
            logger.warning("rejecting layout: %d dangling reference(s)", len(refs))
            return RenderOutcome(svg=None, data_uri=None, rejected=refs)

    result = full_layout(graph, coerce_options(options), id_source)
    svg = SvgRenderer().render(result)
    return RenderOutcome(svg=svg, data_uri=to_data_uri(svg), dropped=result.dropped)
