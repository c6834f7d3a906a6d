"""Exception hierarchy for chronos_diagram."""

from __future__ import annotations


class DiagramError(Exception):
    """Base class for every error raised by this package."""


class GraphValidationError(DiagramError):
    """Raised when the input graph is malformed (missing or mistyped fields).

    ``entity`` names the offending node or edge, e.g. ``"node[3]"`` or
    ``"edge[0] (A -> ?)"``.
    """

    def __init__(self, entity: str, message: str) -> None:
        super().__init__(f"{entity}: {message}")
        self.entity = entity


class DanglingReferenceError(DiagramError):
    """Raised in strict mode when edges reference unknown node ids."""

    def __init__(self, references: list) -> None:
        listing = ", ".join(str(ref) for ref in references)
        super().__init__(f"{len(references)} edge(s) reference unknown nodes: {listing}")
        self.references = references


class ConfigError(DiagramError):
    """Raised for unknown option keys or invalid option values."""
