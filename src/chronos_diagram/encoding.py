"""Data-URI encoding of rendered documents."""

from __future__ import annotations

import base64

SVG_MIME = "image/svg+xml"
_PREFIX = f"data:{SVG_MIME};base64,"


def to_data_uri(svg: str) -> str:
    """Base64 data URI of the UTF-8 bytes of ``svg``."""
    return _PREFIX + base64.b64encode(svg.encode("utf-8")).decode("ascii")


def from_data_uri(uri: str) -> str:
    """Decode a URI produced by ``to_data_uri`` back to the document text."""
    if not uri.startswith(_PREFIX):
        raise ValueError(f"not a base64 {SVG_MIME} data URI: {uri[:40]!r}")
    return base64.b64decode(uri[len(_PREFIX) :], validate=True).decode("utf-8")
