"""Lay out segment counts from the command line.

Usage:
    python -m segment_venn counts.json --pretty
    echo '{"A": 100, "B": 50, "A_AND_B": 20}' | python -m segment_venn -
    python -m segment_venn counts.json --hints hints.json --format html -o venn.html

The input JSON may be a flat label -> count object, an object with
``counts`` (and optionally ``hints``), a list of ``{"sets", "size"}``
records, or the nested segment shape (``outer``/``inner``).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

from .config import InferencePolicy, LayoutConfig, ReconcileOptions
from .emphasis import compute_emphasis
from .figure import diagram_figure
from .layout import STRATEGIES, compute_layout
from .logging_config import setup_logging
from .reconcile import Reconciliation, reconcile, reconcile_records, segments_from_nested


def _read_json(path: str) -> Any:
    if path == "-":
        if sys.stdin.isatty():
            print("Error: pipe JSON input via stdin or pass a file path", file=sys.stderr)
            sys.exit(1)
        source = sys.stdin.read()
        where = "stdin"
    else:
        try:
            with open(path, encoding="utf-8") as f:
                source = f.read()
        except OSError as e:
            print(f"Error: cannot read {path}: {e}", file=sys.stderr)
            sys.exit(1)
        where = path
    try:
        return json.loads(source)
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON in {where}: {e}", file=sys.stderr)
        sys.exit(1)


def _reconcile_input(
    data: Any,
    hints: Optional[Dict[str, Any]],
    options: ReconcileOptions,
) -> Reconciliation:
    if isinstance(data, list):
        return reconcile_records(data, hints, options)
    if not isinstance(data, dict):
        print(f"Error: expected a JSON object or list (got {type(data).__name__})", file=sys.stderr)
        sys.exit(1)
    if "outer" in data or "inner" in data:
        counts, nested_hints = segments_from_nested(data, options.separator)
        return reconcile(counts, {**nested_hints, **(hints or {})}, options)
    if "counts" in data:
        if not isinstance(data["counts"], dict):
            print("Error: 'counts' must be an object", file=sys.stderr)
            sys.exit(1)
        embedded = data.get("hints") if isinstance(data.get("hints"), dict) else {}
        return reconcile(data["counts"], {**embedded, **(hints or {})}, options)
    return reconcile(data, hints, options)


def _build_config(args: argparse.Namespace) -> Tuple[LayoutConfig, ReconcileOptions]:
    overrides: Dict[str, Any] = {}
    if args.config:
        loaded = _read_json(args.config)
        if not isinstance(loaded, dict):
            print("Error: --config must hold a JSON object", file=sys.stderr)
            sys.exit(1)
        overrides.update(loaded)
    for key in ("width", "height"):
        if getattr(args, key) is not None:
            overrides[key] = getattr(args, key)
    if args.fill is not None:
        overrides["fill_fraction"] = args.fill
    try:
        return (
            LayoutConfig.from_dict(overrides),
            ReconcileOptions(separator=args.separator, policy=InferencePolicy(args.policy)),
        )
    except (TypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Area-proportional Venn layout for segment counts")
    p.add_argument("input", help="JSON file with counts, or '-' for stdin")
    p.add_argument("--hints", help="JSON file mapping set names to {role, relatedTo, intersectsWith}")
    p.add_argument("--config", help="JSON file with LayoutConfig fields")
    p.add_argument("--width", type=float, help="Canvas width")
    p.add_argument("--height", type=float, help="Canvas height")
    p.add_argument("--fill", type=float, help="Fill fraction of the largest circle (0-1]")
    p.add_argument("--separator", default="_AND_", help="Token joining names in composite labels")
    p.add_argument(
        "--policy",
        default=InferencePolicy.SUBSET.value,
        choices=[policy.value for policy in InferencePolicy],
        help="How missing pairwise intersections are inferred",
    )
    p.add_argument("--strategy", default="heuristic", choices=sorted(STRATEGIES), help="Layout strategy")
    p.add_argument("--select", help="Set name to render as selected (html only)")
    p.add_argument("--hover", help="Set name to render as hovered (html only)")
    p.add_argument("--title", help="Figure title (html only)")
    p.add_argument("--format", default="json", choices=["json", "html"], help="Output format")
    p.add_argument("-o", "--output", help="Write to file instead of stdout")
    p.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    return p.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    args = parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(level)

    config, options = _build_config(args)
    hints = None
    if args.hints:
        hints = _read_json(args.hints)
        if not isinstance(hints, dict):
            print("Error: --hints must hold a JSON object", file=sys.stderr)
            sys.exit(1)

    reconciliation = _reconcile_input(_read_json(args.input), hints, options)
    diagram = compute_layout(reconciliation, config, args.strategy)

    if args.format == "html":
        emphasis = compute_emphasis(diagram, selected=args.select, hovered=args.hover)
        fig = diagram_figure(diagram, emphasis=emphasis, title=args.title)
        output = fig.to_html(include_plotlyjs="cdn", full_html=True)
    else:
        output = json.dumps(diagram.to_dict(), indent=2 if args.pretty else None)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(output)
                f.write("\n")
        except OSError as e:
            print(f"Error: cannot write {args.output}: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(output)


if __name__ == "__main__":
    main()
