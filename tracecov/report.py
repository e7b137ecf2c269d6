"""JSON-friendly encodings and text summaries of coverage snapshots.

The dictionary form matches what trace-coverage front-ends have always
consumed: one record per file with the four tallies and a dense ``lines``
list where index ``i`` describes source line ``i + 1`` and gaps are
``None``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .engine import FileSnapshot, LineSnapshot


def line_to_dict(linenum: int, data: LineSnapshot) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "linenum": linenum,
        "coverage": data.coverage.value,
        "counts": list(data.counts),
    }
    if data.start_func:
        record["startFunc"] = True
    if data.end_func:
        record["endFunc"] = True
    return record


def snapshot_to_dict(snapshot: FileSnapshot) -> Dict[str, Any]:
    lines: List[Optional[Dict[str, Any]]] = [
        line_to_dict(index + 1, data) if data is not None else None
        for index, data in enumerate(snapshot.lines)
    ]
    return {
        "filename": snapshot.filename,
        "covered": snapshot.covered,
        "partial": snapshot.partial,
        "uncovered": snapshot.uncovered,
        "dead": snapshot.dead,
        "lines": lines,
    }


def encode_snapshots(snapshots: Iterable[FileSnapshot]) -> List[Dict[str, Any]]:
    """Return a list of snapshot records suitable for JSON encoding."""

    return [snapshot_to_dict(snapshot) for snapshot in snapshots]


def percent_covered(snapshot: FileSnapshot) -> float:
    executable = snapshot.covered + snapshot.partial + snapshot.uncovered
    if not executable:
        return 0.0
    return 100.0 * snapshot.covered / executable


def format_summary(snapshots: Iterable[FileSnapshot]) -> str:
    rows = [
        (
            snap.filename,
            str(snap.covered),
            str(snap.partial),
            str(snap.uncovered),
            str(snap.dead),
            f"{percent_covered(snap):.1f}%",
        )
        for snap in snapshots
    ]
    header = ("file", "full", "some", "none", "dead", "cover")
    widths = [max(len(row[col]) for row in rows + [header]) for col in range(len(header))]
    out = []
    for row in [header] + rows:
        cells = [row[0].ljust(widths[0])] + [cell.rjust(w) for cell, w in zip(row[1:], widths[1:])]
        out.append("  ".join(cells).rstrip())
    return "\n".join(out)


def format_lines(snapshot: FileSnapshot) -> str:
    """Per-line table of a single file (only lines with data)."""

    out = []
    for index, data in enumerate(snapshot.lines):
        if data is None:
            continue
        marker = ""
        if data.start_func:
            marker += "{"
        if data.end_func:
            marker += "}"
        counts = ",".join(str(c) for c in data.counts)
        out.append(f"{index + 1:>6}  {data.coverage.value or '-':<5}  {marker:<2}  {counts}")
    return "\n".join(out)
