"""Tests for labels.py — label synthesis, truncation, id sources."""

from __future__ import annotations

from types import SimpleNamespace

from chronos_diagram.config import Options
from chronos_diagram.graph import Edge
from chronos_diagram.labels import (
    FALLBACK_LABEL,
    CounterIdSource,
    RandomIdSource,
    normalize_edges,
    synthesize_label,
    truncate_label,
)

# ─── synthesize_label ─────────────────────────────────────────────────────────


class TestSynthesizeLabel:
    def test_no_meta(self):
        assert synthesize_label(None) == FALLBACK_LABEL
        assert synthesize_label({}) == FALLBACK_LABEL

    def test_string_meta_cut_to_48(self):
        assert synthesize_label("x" * 60) == "x" * 48

    def test_name_beats_type(self):
        assert synthesize_label({"name": "deploy", "type": "ack"}) == "deploy"

    def test_name_stringified(self):
        assert synthesize_label({"name": 42}) == "42"

    def test_type(self):
        assert synthesize_label({"type": "ack"}) == "event:ack"

    def test_string_payload(self):
        assert synthesize_label({"payload": "hello"}) == "hello"

    def test_payload_type(self):
        assert synthesize_label({"payload": {"type": "tick"}}) == "event:tick"

    def test_payload_without_type(self):
        assert synthesize_label({"payload": {"value": 1}}) == FALLBACK_LABEL

    def test_attribute_meta(self):
        assert synthesize_label(SimpleNamespace(name=None, type="ping")) == "event:ping"

    def test_hostile_meta_falls_back(self):
        class Exploding:
            def __bool__(self):
                raise RuntimeError("boom")

        assert synthesize_label(Exploding()) == FALLBACK_LABEL


# ─── truncate_label ───────────────────────────────────────────────────────────


class TestTruncateLabel:
    def test_short_label_unchanged(self):
        assert truncate_label("event:ack", 32) == "event:ack"

    def test_exact_length_unchanged(self):
        assert truncate_label("a" * 32, 32) == "a" * 32

    def test_long_label_gets_ellipsis(self):
        out = truncate_label("a" * 40, 32)
        assert out == "a" * 29 + "..."
        assert len(out) == 32

    def test_empty(self):
        assert truncate_label(None, 32) == ""
        assert truncate_label("", 32) == ""


# ─── Id sources ───────────────────────────────────────────────────────────────


class TestIdSources:
    def test_counter(self):
        src = CounterIdSource()
        assert [src.next_token() for _ in range(3)] == ["1", "2", "3"]

    def test_counter_start(self):
        assert CounterIdSource(start=10).next_token() == "10"

    def test_random_seeded_is_repeatable(self):
        a, b = RandomIdSource(seed=5), RandomIdSource(seed=5)
        assert [a.next_token() for _ in range(4)] == [b.next_token() for _ in range(4)]

    def test_random_token_shape(self):
        token = RandomIdSource(seed=1).next_token()
        assert len(token) == 7
        assert token.isalnum() and token == token.lower()


# ─── normalize_edges ──────────────────────────────────────────────────────────


class TestNormalizeEdges:
    def test_fills_missing_fields(self):
        edges = (Edge("A", "B"), Edge("B", "C", meta={"type": "ack"}))
        out = normalize_edges(edges, Options(), CounterIdSource())
        assert [e.id for e in out] == ["e-1-1", "e-2-2"]
        assert [e.label for e in out] == ["event:auto", "event:ack"]

    def test_keeps_explicit_values(self):
        edge = Edge("A", "B", id="mine", label="x" * 50)
        out = normalize_edges((edge,), Options(), CounterIdSource())
        assert out[0] is edge

    def test_sequence_counts_only_synthesized_ids(self):
        edges = (Edge("A", "B", id="given"), Edge("B", "C"))
        out = normalize_edges(edges, Options(), CounterIdSource())
        assert out[1].id == "e-1-1"

    def test_synthesized_label_truncated(self):
        edge = Edge("A", "B", meta={"name": "n" * 40})
        out = normalize_edges((edge,), Options(edge_label_max_length=10), CounterIdSource())
        assert out[0].label == "nnnnnnn..."

    def test_synthesized_id_skips_explicit_ids(self):
        edges = (Edge("A", "B", id="e-1-1"), Edge("B", "C"), Edge("C", "A", id="e-2-3"), Edge("A", "C"))
        out = normalize_edges(edges, Options(), CounterIdSource())
        ids = [e.id for e in out]
        assert ids == ["e-1-1", "e-1-2", "e-2-3", "e-2-4"]
        assert len(set(ids)) == len(ids)

    def test_does_not_mutate_input(self):
        edge = Edge("A", "B", meta={"type": "ack"})
        normalize_edges((edge,), Options(), CounterIdSource())
        assert edge.id is None
        assert edge.label is None

    def test_ids_unique_within_call(self):
        edges = tuple(Edge("A", "B") for _ in range(50))
        out = normalize_edges(edges, Options(), RandomIdSource(seed=3))
        assert len({e.id for e in out}) == 50
