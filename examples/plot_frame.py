#!/usr/bin/env python3
"""Score one frame of a submission and render an overlay image.

Requires plotting extras:
  pip install -e .[viz]

Example:
  python examples/plot_frame.py \
    --gt annotations/ --solution solution.tsv \
    --frame 2018-02-13_1418_left/000032 \
    --image images/2018-02-13_1418_left/000032.jpg \
    --out overlay.png
"""

from __future__ import annotations

import argparse
from pathlib import Path

import icescore
from icescore import viz


def main() -> None:
    parser = argparse.ArgumentParser(description="Plot ground truth and scored detections of one frame")
    parser.add_argument("--gt", required=True, type=Path, help="Ground truth TSV file or directory")
    parser.add_argument("--solution", required=True, type=Path, help="Solution TSV file")
    parser.add_argument("--frame", required=True, help="Frame id, e.g. 2018-02-13_1418_left/000032")
    parser.add_argument("--image", required=True, type=Path, help="Image of that frame")
    parser.add_argument("--out", type=Path, default=None, help="Output overlay PNG path")
    args = parser.parse_args()

    config = icescore.ScoringConfig()
    frames = {f.frame_id: f for f in icescore.load_frames(args.gt, args.solution, config)}
    frame = frames.get(args.frame)
    if frame is None:
        raise SystemExit(f"frame not in ground truth: {args.frame}")

    stats, result = icescore.score_frame(frame, config)
    print(f"Frame score:   {stats.score:.3f}")
    print(f"Frame penalty: {stats.penalty:.3f}")

    viz.plot_frame(image=args.image, frame=frame, result=result, out=args.out)
    if args.out is not None:
        print(f"Wrote {args.out}")


if __name__ == "__main__":
    main()
