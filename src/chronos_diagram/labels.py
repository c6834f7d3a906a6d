"""Edge id and label synthesis.

Edges arriving without a label get one derived from their ``meta`` payload;
edges without an id get ``e-<seq>-<token>``. ``normalize_edges`` returns new
``Edge`` values and leaves the caller's edges untouched.
"""

from __future__ import annotations

import dataclasses
import logging
import random
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from chronos_diagram.config import Options
from chronos_diagram.graph import Edge

logger = logging.getLogger(__name__)

META_LABEL_MAX: int = 48
FALLBACK_LABEL: str = "event:auto"
ELLIPSIS: str = "..."

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


# ─── Id sources ───────────────────────────────────────────────────────────────


class IdSource(Protocol):
    """Produces the next unique token for synthesized ids."""

    def next_token(self) -> str: ...


class CounterIdSource:
    """Deterministic tokens ``1``, ``2``, ``3``, ..."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next_token(self) -> str:
        token = str(self._next)
        self._next += 1
        return token


class RandomIdSource:
    """Seven random base-36 characters per token, from a private generator."""

    def __init__(self, seed: int | None = None, length: int = 7) -> None:
        self._rng = random.Random(seed)
        self._length = length

    def next_token(self) -> str:
        return "".join(self._rng.choice(_BASE36) for _ in range(self._length))


# ─── Labels ───────────────────────────────────────────────────────────────────


def _field(meta: Any, name: str) -> Any:
    if isinstance(meta, Mapping):
        return meta.get(name)
    return getattr(meta, name, None)


def synthesize_label(meta: Any) -> str:
    """Derive a fallback edge label from ``meta``.

    Priority: a string meta, ``name``, ``type`` (as ``event:<type>``), a string
    ``payload``, ``payload.type`` (as ``event:<type>``), else ``event:auto``.
    Every derived value is cut to 48 characters.
    """
    try:
        if not meta:
            return FALLBACK_LABEL
        if isinstance(meta, str):
            return meta[:META_LABEL_MAX]
        name = _field(meta, "name")
        if name:
            return str(name)[:META_LABEL_MAX]
        kind = _field(meta, "type")
        if kind:
            return f"event:{kind}"[:META_LABEL_MAX]
        payload = _field(meta, "payload")
        if payload:
            if isinstance(payload, str):
                return payload[:META_LABEL_MAX]
            payload_kind = _field(payload, "type")
            if payload_kind:
                return f"event:{payload_kind}"[:META_LABEL_MAX]
        return FALLBACK_LABEL
    except Exception:  # arbitrary caller objects; any failure falls back
        logger.debug("label synthesis failed for meta %r", meta, exc_info=True)
        return FALLBACK_LABEL


def truncate_label(label: str | None, max_length: int) -> str:
    """Cut ``label`` to ``max_length`` characters, ending in ``...`` when cut."""
    if not label:
        return ""
    if len(label) <= max_length:
        return label
    return label[: max_length - len(ELLIPSIS)] + ELLIPSIS


# ─── Normalization ────────────────────────────────────────────────────────────


def normalize_edges(
    edges: Iterable[Edge],
    options: Options,
    id_source: IdSource,
) -> tuple[Edge, ...]:
    """Return copies of ``edges`` with ``id`` and ``label`` filled in.

    Explicit labels are kept verbatim; synthesized ones are truncated to
    ``options.edge_label_max_length``.
    """
    edges = tuple(edges)
    # Synthesized ids must not shadow ids the caller supplied.
    taken = {edge.id for edge in edges if edge.id}
    seq = 0
    out: list[Edge] = []
    for edge in edges:
        changes: dict[str, str] = {}
        if not edge.id:
            seq += 1
            candidate = f"e-{seq}-{id_source.next_token()}"
            while candidate in taken:
                candidate = f"e-{seq}-{id_source.next_token()}"
            taken.add(candidate)
            changes["id"] = candidate
        if not edge.label:
            changes["label"] = truncate_label(synthesize_label(edge.meta), options.edge_label_max_length)
        out.append(dataclasses.replace(edge, **changes) if changes else edge)
    if seq:
        logger.debug("synthesized %d edge id(s)", seq)
    return tuple(out)
