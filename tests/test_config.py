"""Tests for config.py — Options defaults, parsing and validation."""

from __future__ import annotations

import pytest

from chronos_diagram.config import Options, coerce_options
from chronos_diagram.errors import ConfigError


class TestOptions:
    def test_defaults(self):
        opts = Options()
        assert opts.node_padding == 10
        assert opts.node_v_gap == 80
        assert opts.node_h_gap == 36
        assert (opts.width, opts.height) == (1200, 800)
        assert opts.font_size == 12
        assert opts.edge_label_max_length == 32
        assert opts.canvas_padding == 40
        assert opts.placement == "slots"

    def test_camel_case_keys(self):
        opts = Options.from_mapping({"nodePadding": 4, "fontSize": 14, "edgeLabelMaxLength": 20, "width": 900})
        assert opts.node_padding == 4
        assert opts.font_size == 14
        assert opts.edge_label_max_length == 20
        assert opts.width == 900

    def test_none_values_keep_defaults(self):
        assert Options.from_mapping({"width": None}).width == 1200

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="colour"):
            Options.from_mapping({"colour": "red"})

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"height": -5},
            {"font_size": "12"},
            {"node_padding": -1},
            {"edge_label_max_length": 3},
            {"edge_label_max_length": 10.5},
            {"background": None},
            {"placement": "grid"},
            {"width": True},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            Options(**kwargs)

    @pytest.mark.parametrize("data", [5, "width=10", ["width"]])
    def test_non_mapping_rejected(self, data):
        with pytest.raises(ConfigError, match="mapping"):
            Options.from_mapping(data)

    def test_merged(self):
        opts = Options().merged(width=640, height=None)
        assert opts.width == 640
        assert opts.height == 800

    def test_coerce(self):
        opts = Options(width=10)
        assert coerce_options(opts) is opts
        assert coerce_options(None) == Options()
        assert coerce_options({"height": 300}).height == 300
