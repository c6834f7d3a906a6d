"""Renderers turning a ``LayoutResult`` into a document."""

from chronos_diagram.renderers.base import Renderer
from chronos_diagram.renderers.svg import SvgRenderer, escape_xml

__all__ = ["Renderer", "SvgRenderer", "escape_xml"]
