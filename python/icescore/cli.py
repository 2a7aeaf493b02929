"""Command-line scorer.

Usage:
    icescore annotations/ submission.tsv [--verbose] [--out scores.json]
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .aggregate import diagnostic_rows, score_frames
from .config import ScoringConfig
from .errors import ConfigError, ContractViolation, RecordError
from .records import load_frames
from .report import print_diagnostics, print_report, stats_to_json


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="icescore", description="IceVision competition scoring software")
    parser.add_argument("ground_truth", type=Path, help="Ground truth TSV file or directory of per-frame TSV files")
    parser.add_argument("solution", type=Path, help="Solution TSV file")
    parser.add_argument("--config", type=Path, default=None, help="Optional scoring config JSON")
    parser.add_argument("--iou-low", type=float, default=None, help="Override the candidate IoU threshold")
    parser.add_argument("--iou-high", type=float, default=None, help="Override the IoU where the shape score saturates")
    parser.add_argument("--fp-penalty", type=float, default=None, help="Override the false-positive penalty")
    parser.add_argument(
        "--min-area",
        dest="min_detection_area",
        type=float,
        default=None,
        help="Drop detections with a smaller box area (px^2)",
    )
    parser.add_argument("--jobs", type=int, default=1, help="Worker processes used for matching")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print per-detection scores for every frame")
    parser.add_argument("--out", type=Path, default=None, help="Optional: write scores JSON to this path")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics on stderr",
    )
    return parser


def load_config(args: argparse.Namespace) -> ScoringConfig:
    config = ScoringConfig() if args.config is None else ScoringConfig.from_json(args.config)
    return config.updated(
        iou_low=args.iou_low,
        iou_high=args.iou_high,
        fp_penalty=args.fp_penalty,
        min_detection_area=args.min_detection_area,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args)
        frames = load_frames(args.ground_truth, args.solution, config)
    except (ConfigError, RecordError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    on_frame = None
    if args.verbose:

        def on_frame(frame, result):
            print_diagnostics(frame.frame_id, diagnostic_rows(frame, result, config))

    try:
        stats = score_frames(frames, config, max_workers=args.jobs, on_frame=on_frame)
    except ContractViolation as exc:
        print(f"contract violation: {exc}", file=sys.stderr)
        return 2

    print_report(stats)

    if args.out is not None:
        stats_to_json(stats, config, args.out, n_frames=len(frames))
        print(f"Scores written to {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
