"""SVG renderer — renders a LayoutResult to one self-contained SVG string."""

from __future__ import annotations

from chronos_diagram.layout import LayoutNode, LayoutResult, RoutedEdge, fmt_num

# ─── Constants ──────────────────────────────────────────────────────────────

SVG_NS = "http://www.w3.org/2000/svg"
FONT_FAMILY = 'ui-monospace, SFMono-Regular, Menlo, Monaco, "Roboto Mono", "Courier New", monospace'
NODE_TEXT_FILL = "#e6eef8"
EDGE_TEXT_FILL = "#bae6fd"
MIN_EDGE_FONT_SIZE = 10
NODE_RADIUS = 8
NODE_STROKE_WIDTH = 1.2
EDGE_STROKE_WIDTH = 1.4
EDGE_OPACITY = 0.9

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(value: object) -> str:
    """Escape ``& < > " '`` for text and attribute content.

    Anything that is not a string (``None`` included) becomes ``""``.
    """
    if not isinstance(value, str):
        return ""
    for char, entity in _XML_ESCAPES:
        value = value.replace(char, entity)
    return value


# ─── Chrome ─────────────────────────────────────────────────────────────────


def _render_defs(result: LayoutResult, marker_id: str) -> str:
    opts = result.options
    edge_font = max(MIN_EDGE_FONT_SIZE, opts.font_size - 1)
    return "\n".join(
        [
            "<defs>",
            f'  <marker id="{marker_id}" markerWidth="10" markerHeight="10" refX="10" refY="5" orient="auto">',
            f'    <path d="M0,0 L10,5 L0,10 z" fill="{escape_xml(opts.arrow_color)}"/>',
            "  </marker>",
            "  <style>",
            f"    .node-text {{ font-family: {FONT_FAMILY}; font-size: {fmt_num(opts.font_size)}px; fill: {NODE_TEXT_FILL}; }}",
            f"    .edge-text {{ font-family: {FONT_FAMILY}; font-size: {fmt_num(edge_font)}px; fill: {EDGE_TEXT_FILL}; }}",
            "  </style>",
            "</defs>",
        ]
    )


# ─── Node Rendering ─────────────────────────────────────────────────────────


def _render_node(ln: LayoutNode, result: LayoutResult) -> str:
    opts = result.options
    w, h = fmt_num(ln.width), fmt_num(ln.height)
    return "\n".join(
        [
            f'<g id="node-{escape_xml(ln.id)}" transform="translate({fmt_num(ln.left)},{fmt_num(ln.top)})">',
            f'  <rect rx="{NODE_RADIUS}" ry="{NODE_RADIUS}" width="{w}" height="{h}" '
            f'fill="{escape_xml(opts.node_fill)}" stroke="{escape_xml(opts.node_stroke)}" '
            f'stroke-width="{NODE_STROKE_WIDTH}"/>',
            f'  <text class="node-text" x="{fmt_num(ln.width / 2)}" y="{fmt_num(ln.height / 2)}" '
            f'dominant-baseline="middle" text-anchor="middle">{escape_xml(ln.label)}</text>',
            "</g>",
        ]
    )


# ─── Edge Rendering ─────────────────────────────────────────────────────────


def _render_edge(re: RoutedEdge, result: LayoutResult, marker_id: str) -> str:
    path_id = f"path-{escape_xml(re.id)}"
    label = escape_xml(re.label)
    return "\n".join(
        [
            f'<g class="edge" aria-label="{label}">',
            f'  <path id="{path_id}" d="{re.path_data}" fill="none" '
            f'stroke="{escape_xml(result.options.arrow_color)}" stroke-width="{EDGE_STROKE_WIDTH}" '
            f'marker-end="url(#{marker_id})" opacity="{EDGE_OPACITY}"/>',
            '  <text class="edge-text">',
            f'    <textPath href="#{path_id}" startOffset="50%" text-anchor="middle">{label}</textPath>',
            "  </text>",
            "</g>",
        ]
    )


# ─── Public Renderer ────────────────────────────────────────────────────────


class SvgRenderer:
    """SVG renderer — consumes a LayoutResult, produces an SVG string.

    Edges are drawn before nodes so boxes sit on top of the curves. The
    declared width/height are exactly the requested canvas size.
    """

    def render(self, result: LayoutResult) -> str:
        w, h = fmt_num(result.width), fmt_num(result.height)
        marker_id = f"arrow-svg{escape_xml(result.token)}"

        parts = [
            f'<svg xmlns="{SVG_NS}" width="{w}" height="{h}" viewBox="0 0 {w} {h}" '
            'role="img" aria-label="System diagram">',
            _render_defs(result, marker_id),
            f'<rect width="{w}" height="{h}" fill="{escape_xml(result.options.background)}"/>',
            '<g class="edges">',
        ]
        for re in result.edges:
            parts.append(_render_edge(re, result, marker_id))
        parts.append("</g>")

        parts.append('<g class="nodes">')
        for ln in result.nodes:
            parts.append(_render_node(ln, result))
        parts.append("</g>")

        parts.append("</svg>")
        return "\n".join(parts)
