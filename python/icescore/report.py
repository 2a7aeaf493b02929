"""Console and JSON output for score stats."""

from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Any, Sequence, TextIO

from .aggregate import DiagnosticRow
from .config import ScoringConfig
from .types import ScoreStats


DIAGNOSTIC_HEADER = ("score", "xtl", "ytl", "xbr", "ybr", "class", "s", "k1", "k2", "k3")


def print_report(stats: ScoreStats, file: TextIO | None = None) -> None:
    """Print the total score, penalty and per-class table."""
    out = sys.stdout if file is None else file
    print(f"Total score:\t{stats.score:.3f}", file=out)
    print(f"Penalty:\t{stats.penalty:.3f}", file=out)
    classes = stats.sorted_classes()
    for sign_class in classes:
        print(f"Score {sign_class}:\t{stats.per_class[sign_class].score:.3f}", file=out)
    for sign_class in classes:
        print(f"Penalty {sign_class}:\t{stats.per_class[sign_class].penalty:.3f}", file=out)


def format_diagnostic_row(row: DiagnosticRow) -> str:
    b = row.bbox
    cells: list[str] = [f"{row.score:.3f}", f"{b.xtl:g}", f"{b.ytl:g}", f"{b.xbr:g}", f"{b.ybr:g}", str(row.sign_class)]
    if row.matched:
        cells += [f"{row.shape_score:.3f}", str(row.k1), str(row.k2), str(row.k3)]
    else:
        cells += ["-", "-", "-", "-"]
    return "\t".join(cells)


def print_diagnostics(frame_id: str, rows: Sequence[DiagnosticRow], file: TextIO | None = None) -> None:
    """Print the verbose per-detection table of one frame."""
    out = sys.stdout if file is None else file
    print(f"# {frame_id}", file=out)
    print("\t".join(DIAGNOSTIC_HEADER), file=out)
    for row in rows:
        print(format_diagnostic_row(row), file=out)


def stats_to_dict(stats: ScoreStats, config: ScoringConfig, *, n_frames: int | None = None) -> dict[str, Any]:
    out = stats.to_dict()
    out["config"] = config.to_dict()
    if n_frames is not None:
        out["n_frames"] = int(n_frames)
    return out


def stats_to_json(
    stats: ScoreStats,
    config: ScoringConfig,
    path: str | Path | None = None,
    *,
    n_frames: int | None = None,
) -> str | None:
    """Serialize to pretty JSON text or write JSON to `path`."""
    text = json.dumps(stats_to_dict(stats, config, n_frames=n_frames), indent=2)
    if path is None:
        return text
    Path(path).write_text(text, encoding="utf-8")
    return None
