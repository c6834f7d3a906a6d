"""Layout and rendering options."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from chronos_diagram.errors import ConfigError

# ─── Defaults ─────────────────────────────────────────────────────────────────

NODE_PADDING: int = 10  # px inside the node box, each side
NODE_V_GAP: int = 80
NODE_H_GAP: int = 36
CANVAS_WIDTH: int = 1200
CANVAS_HEIGHT: int = 800
CANVAS_PADDING: int = 40
FONT_SIZE: int = 12
EDGE_LABEL_MAX_LENGTH: int = 32

BACKGROUND: str = "#0f172a"
ARROW_COLOR: str = "#60a5fa"
NODE_FILL: str = "#0b1220"
NODE_STROKE: str = "#1f2937"

PLACEMENTS: tuple[str, ...] = ("slots", "packed")

# camelCase spellings accepted from JSON input.
_CAMEL_KEYS: dict[str, str] = {
    "nodePadding": "node_padding",
    "nodeVGap": "node_v_gap",
    "nodeHGap": "node_h_gap",
    "fontSize": "font_size",
    "arrowColor": "arrow_color",
    "nodeFill": "node_fill",
    "nodeStroke": "node_stroke",
    "edgeLabelMaxLength": "edge_label_max_length",
    "canvasPadding": "canvas_padding",
}

_COLOR_FIELDS = ("background", "arrow_color", "node_fill", "node_stroke")


@dataclass(frozen=True)
class Options:
    """Options for one layout-and-render call. Every field has a default."""

    node_padding: float = NODE_PADDING
    node_v_gap: float = NODE_V_GAP
    node_h_gap: float = NODE_H_GAP
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT
    font_size: float = FONT_SIZE
    background: str = BACKGROUND
    arrow_color: str = ARROW_COLOR
    node_fill: str = NODE_FILL
    node_stroke: str = NODE_STROKE
    edge_label_max_length: int = EDGE_LABEL_MAX_LENGTH
    canvas_padding: float = CANVAS_PADDING
    placement: str = "slots"

    def __post_init__(self) -> None:
        for name in ("node_padding", "node_v_gap", "node_h_gap", "canvas_padding"):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ConfigError(f"{name} must be a non-negative number, got {value!r}")
        for name in ("width", "height", "font_size"):
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        if isinstance(self.edge_label_max_length, bool) or not isinstance(self.edge_label_max_length, int):
            raise ConfigError(f"edge_label_max_length must be an int, got {self.edge_label_max_length!r}")
        if self.edge_label_max_length < 4:
            # Room for at least one character plus the ellipsis.
            raise ConfigError(f"edge_label_max_length must be >= 4, got {self.edge_label_max_length}")
        for name in _COLOR_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a color string, got {getattr(self, name)!r}")
        if self.placement not in PLACEMENTS:
            raise ConfigError(f"placement must be one of {PLACEMENTS}, got {self.placement!r}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> Options:
        """Build Options from a mapping using snake_case or camelCase keys.

        ``None`` values are treated as absent so partially filled JSON keeps
        the defaults.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"options must be a mapping, got {type(data).__name__}")
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                raise ConfigError(f"unknown option {key!r}")
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def merged(self, **overrides: Any) -> Options:
        """Return a copy with ``overrides`` applied (``None`` values ignored)."""
        return dataclasses.replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_options(options: Options | Mapping[str, Any] | None) -> Options:
    """Accept ``Options``, a plain mapping or ``None``."""
    if isinstance(options, Options):
        return options
    return Options.from_mapping(options)
