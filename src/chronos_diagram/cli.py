"""Command line front end: JSON graph in, SVG (or data URI) out."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from chronos_diagram.api import render
from chronos_diagram.config import PLACEMENTS, Options
from chronos_diagram.errors import DiagramError
from chronos_diagram.graph import Graph
from chronos_diagram.labels import RandomIdSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chronos-diagram",
        description="Render a JSON node/edge graph to a layered SVG diagram.",
    )
    parser.add_argument("input", help="Path to a JSON graph file, or - for stdin")
    parser.add_argument("-o", "--output", help="Write the result here instead of stdout")
    parser.add_argument("--data-uri", action="store_true", help="Emit a base64 data URI instead of SVG markup")
    parser.add_argument("--width", type=float, help="Canvas width in px")
    parser.add_argument("--height", type=float, help="Canvas height in px")
    parser.add_argument("--font-size", type=float, help="Node label font size in px")
    parser.add_argument("--placement", choices=PLACEMENTS, help="Horizontal placement within a layer")
    parser.add_argument("--strict", action="store_true", help="Fail on edges that reference unknown nodes")
    parser.add_argument("--seed", type=int, help="Use random edge ids from this seed instead of a counter")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _load(path: str) -> dict:
    text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    return json.loads(text)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        data = _load(args.input)
        # Options may ride along in the graph file under "options".
        options = Options.from_mapping(data.pop("options", None) if isinstance(data, dict) else None)
        options = options.merged(
            width=args.width,
            height=args.height,
            font_size=args.font_size,
            placement=args.placement,
        )
        graph = Graph.from_dict(data)
        id_source = RandomIdSource(args.seed) if args.seed is not None else None
        outcome = render(graph, options, id_source=id_source, strict=args.strict)
        outcome.raise_for_rejection()
    except (OSError, json.JSONDecodeError, DiagramError) as exc:
        print(f"chronos-diagram: {exc}", file=sys.stderr)
        return 1

    text = outcome.data_uri if args.data_uri else outcome.svg
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logger.info("wrote %s", args.output)
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
