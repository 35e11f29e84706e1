"""
Tests for the segment-venn command line.

Runs ``python -m segment_venn`` in a subprocess, the way it is used from
shell pipelines.

Run: pytest tests/test_cli.py -v
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

REPO_ROOT = Path(__file__).resolve().parent.parent

PAIR = {"Event_1": 1200, "Event_2": 900, "Event_1_AND_Event_2": 700}


def run_cli(*args: str, stdin: Optional[Any] = None) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "segment_venn", *args],
        input=stdin if isinstance(stdin, str) or stdin is None else json.dumps(stdin),
        capture_output=True,
        text=True,
        cwd=str(REPO_ROOT),
        env=env,
        timeout=120,
    )


def test_counts_from_stdin() -> None:
    result = run_cli("-", stdin=PAIR)
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)
    assert [c["setName"] for c in data["circles"]] == ["Event_1", "Event_2"]
    assert data["pairwiseRegions"][0]["approximateSize"] == 700
    assert data["strategy"] == "heuristic"


def test_counts_from_file_with_options(tmp_path: Path) -> None:
    counts = tmp_path / "counts.json"
    counts.write_text(json.dumps(PAIR), encoding="utf-8")
    result = run_cli(str(counts), "--width", "800", "--height", "400", "--strategy", "optimized", "--pretty")
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)
    assert (data["width"], data["height"]) == (800, 400)
    assert data["strategy"] == "optimized"
    assert "\n  " in result.stdout


def test_hints_file(tmp_path: Path) -> None:
    hints = tmp_path / "hints.json"
    hints.write_text(json.dumps({"Event_2": {"role": "inner"}}), encoding="utf-8")
    result = run_cli("-", "--hints", str(hints), stdin={"Event_1": 1200, "Event_2": 900})
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)
    assert data["pairwiseRegions"][0]["fallbackCircle"] is not None


def test_records_and_nested_input() -> None:
    records = [{"sets": ["A"], "size": 10}, {"sets": ["B"], "size": 8}, {"sets": ["A", "B"], "size": 3}]
    result = run_cli("-", stdin=records)
    assert result.returncode == 0, result.stderr
    assert len(json.loads(result.stdout)["circles"]) == 2

    nested = {"outer": {"name": "ALL", "size": 100}, "inner": [{"name": "S1", "size": 40}]}
    result = run_cli("-", stdin=nested)
    assert result.returncode == 0, result.stderr
    circles = json.loads(result.stdout)["circles"]
    assert circles[0]["setName"] == "ALL"
    assert (circles[0]["centerX"], circles[0]["centerY"]) == (0.0, 0.0)


def test_diagnostics_are_reported() -> None:
    result = run_cli("-", stdin={"A": 100, "B": 50, "A_AND_B": 9999})
    assert result.returncode == 0, result.stderr
    codes = [d["code"] for d in json.loads(result.stdout)["diagnostics"]]
    assert "clamped_intersection" in codes


def test_html_output(tmp_path: Path) -> None:
    out = tmp_path / "venn.html"
    result = run_cli("-", "--format", "html", "--select", "Event_1", "--title", "Events", "-o", str(out), stdin=PAIR)
    assert result.returncode == 0, result.stderr
    html = out.read_text(encoding="utf-8")
    assert "<html>" in html
    assert "Events" in html


def test_invalid_json_fails() -> None:
    result = run_cli("-", stdin="{not json")
    assert result.returncode == 1
    assert "Error: invalid JSON" in result.stderr


def test_missing_file_fails(tmp_path: Path) -> None:
    result = run_cli(str(tmp_path / "nope.json"))
    assert result.returncode == 1
    assert "Error: cannot read" in result.stderr


def test_bad_config_fails() -> None:
    result = run_cli("-", "--fill", "3", stdin=PAIR)
    assert result.returncode == 1
    assert "fill_fraction" in result.stderr


def test_non_object_input_fails() -> None:
    result = run_cli("-", stdin="42")
    assert result.returncode == 1
    assert "Error: expected a JSON object or list" in result.stderr


def test_malformed_nested_input_is_not_fatal() -> None:
    result = run_cli("-", stdin={"outer": {"name": "ALL", "size": 10}, "inner": 5, "tripleIntersections": 3})
    assert result.returncode == 0, result.stderr
    assert "Traceback" not in result.stderr
    circles = json.loads(result.stdout)["circles"]
    assert [c["setName"] for c in circles] == ["ALL"]
