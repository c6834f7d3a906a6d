"""Tests for the SVG renderer and data-URI encoding."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

import pytest

from chronos_diagram.config import Options
from chronos_diagram.encoding import SVG_MIME, from_data_uri, to_data_uri
from chronos_diagram.graph import Edge, Graph, Node
from chronos_diagram.layout import full_layout
from chronos_diagram.renderers.svg import SvgRenderer, escape_xml

SVG = "{http://www.w3.org/2000/svg}"


def render(graph: Graph, options: Options | None = None) -> str:
    return SvgRenderer().render(full_layout(graph, options))


def two_nodes(**edge_kwargs) -> Graph:
    return Graph(nodes=(Node("A"), Node("B")), edges=(Edge("A", "B", **edge_kwargs),))


# ─── Escaping ───────────────────────────────────────────────────────────────


class TestEscapeXml:
    def test_all_five(self):
        assert escape_xml("<script>&\"'") == "&lt;script&gt;&amp;&quot;&apos;"

    def test_ampersand_first(self):
        assert escape_xml("&lt;") == "&amp;lt;"

    def test_non_string_degrades(self):
        assert escape_xml(None) == ""
        assert escape_xml(12) == ""
        assert escape_xml(["x"]) == ""

    def test_plain(self):
        assert escape_xml("PRESENTATION") == "PRESENTATION"


# ─── Document structure ─────────────────────────────────────────────────────


class TestSvgRenderer:
    def test_declared_canvas_size(self):
        svg = render(two_nodes(), Options(width=1000, height=600))
        root = ET.fromstring(svg)
        assert root.get("width") == "1000"
        assert root.get("height") == "600"
        assert root.get("viewBox") == "0 0 1000 600"

    def test_fractional_canvas_size(self):
        root = ET.fromstring(render(two_nodes(), Options(width=640.5, height=480)))
        assert root.get("width") == "640.5"

    def test_well_formed_with_expected_groups(self):
        root = ET.fromstring(render(two_nodes(label="go")))
        assert root.find(f"{SVG}defs/{SVG}marker") is not None
        assert root.find(f"{SVG}defs/{SVG}style") is not None
        edges = root.find(f"{SVG}g[@class='edges']")
        nodes = root.find(f"{SVG}g[@class='nodes']")
        assert len(edges) == 1
        assert len(nodes) == 2

    def test_background_rect(self):
        root = ET.fromstring(render(two_nodes(), Options(background="#ffffff")))
        bg = root.find(f"{SVG}rect")
        assert bg.get("fill") == "#ffffff"
        assert bg.get("width") == "1200"

    def test_edges_drawn_before_nodes(self):
        svg = render(two_nodes())
        assert svg.index('<g class="edges">') < svg.index('<g class="nodes">')

    def test_edge_path_and_label(self):
        root = ET.fromstring(render(two_nodes(id="go", label="advance")))
        edge = root.find(f"{SVG}g[@class='edges']/{SVG}g")
        path = edge.find(f"{SVG}path")
        assert path.get("id") == "path-go"
        assert path.get("d") == "M 600 40 C 600 220, 600 580, 600 760"
        text_path = edge.find(f"{SVG}text/{SVG}textPath")
        assert text_path.get("href") == "#path-go"
        assert text_path.text == "advance"

    def test_marker_reference(self):
        svg = render(two_nodes())
        marker_id = re.search(r'<marker id="([^"]+)"', svg).group(1)
        assert f'marker-end="url(#{marker_id})"' in svg

    def test_node_box(self):
        root = ET.fromstring(render(two_nodes()))
        group = root.find(f"{SVG}g[@class='nodes']/{SVG}g[@id='node-A']")
        assert group.get("transform") == "translate(578,25)"
        rect = group.find(f"{SVG}rect")
        assert (rect.get("width"), rect.get("height")) == ("44", "30")
        text = group.find(f"{SVG}text")
        assert (text.get("x"), text.get("y")) == ("22", "15")
        assert text.get("text-anchor") == "middle"
        assert text.text == "A"

    def test_node_label_preferred_over_id(self):
        g = Graph(nodes=(Node("A", label="Alpha"),))
        assert ">Alpha</text>" in render(g)

    def test_edge_font_size(self):
        svg = render(two_nodes(), Options(font_size=16))
        assert "font-size: 16px" in svg
        assert "font-size: 15px" in svg

    def test_no_edges(self):
        root = ET.fromstring(render(Graph(nodes=(Node("A"),))))
        assert len(root.find(f"{SVG}g[@class='edges']")) == 0


class TestEscapingInDocument:
    def test_hostile_labels_escaped(self):
        hostile = "<script>&\"'"
        g = Graph(
            nodes=(Node("A", label=hostile), Node("B")),
            edges=(Edge("A", "B", label=hostile),),
        )
        svg = render(g)
        assert "<script>" not in svg
        assert "&lt;script&gt;&amp;&quot;&apos;" in svg
        ET.fromstring(svg)

    def test_hostile_ids_escaped(self):
        g = Graph(
            nodes=(Node('a"b'), Node("c<d")),
            edges=(Edge('a"b', "c<d", id="x'y"),),
        )
        root = ET.fromstring(render(g))
        ids = {el.get("id") for el in root.iter() if el.get("id")}
        assert 'node-a"b' in ids
        assert "node-c<d" in ids
        assert "path-x'y" in ids

    def test_hostile_colors_escaped(self):
        svg = render(two_nodes(), Options(node_fill='red"/><script>'))
        assert "<script>" not in svg


# ─── Encoder ────────────────────────────────────────────────────────────────


class TestDataUri:
    def test_prefix(self):
        assert to_data_uri("<svg/>").startswith(f"data:{SVG_MIME};base64,")

    def test_known_payload(self):
        assert to_data_uri("<svg/>") == "data:image/svg+xml;base64,PHN2Zy8+"

    def test_utf8(self):
        svg = render(Graph(nodes=(Node("A", label="État → ✓"),)))
        assert from_data_uri(to_data_uri(svg)) == svg

    def test_rejects_other_uris(self):
        with pytest.raises(ValueError):
            from_data_uri("data:text/plain;base64,AAAA")
