#!/usr/bin/env python3
"""Generate a synthetic ground-truth directory and a noisy submission.

Writes `<out_dir>/annotations/<seq>/<frame>.tsv` files and
`<out_dir>/solution.tsv`. Detections are ground-truth boxes with jittered
corners; some signs are missed, some classes are coarsened, and spurious
detections are added, so every scoring rule gets exercised.

Usage:
    python tools/gen_synth.py --out_dir tools/out/synth_001 --n_frames 50
    icescore tools/out/synth_001/annotations tools/out/synth_001/solution.tsv
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from icescore.config import DEFAULT_ALLOWED_CLASSES


GT_HEADER = ("class", "xtl", "ytl", "xbr", "ybr", "temporary", "occluded", "data")
SOLUTION_HEADER = ("frame", "xtl", "ytl", "xbr", "ybr", "class", "temporary", "data")
SPEED_LIMITS = ("20", "40", "60")


def random_box(rng: np.random.Generator, img_w: int, img_h: int) -> list[float]:
    size = float(rng.uniform(16.0, 96.0))
    aspect = float(rng.uniform(0.8, 1.25))
    w, h = size, size * aspect
    x = float(rng.uniform(0.0, img_w - w))
    y = float(rng.uniform(0.0, img_h - h))
    return [x, y, x + w, y + h]


def jitter_box(rng: np.random.Generator, box: list[float], jitter: float) -> list[float]:
    w = box[2] - box[0]
    h = box[3] - box[1]
    noise = rng.normal(0.0, jitter, size=4) * np.array([w, h, w, h])
    xtl, ytl, xbr, ybr = (np.array(box) + noise).tolist()
    return [min(xtl, xbr), min(ytl, ybr), max(xtl, xbr), max(ytl, ybr)]


def make_annotation(rng: np.random.Generator, img_w: int, img_h: int) -> dict:
    code = str(rng.choice(DEFAULT_ALLOWED_CLASSES))
    data = ""
    if code == "3.24":
        data = str(rng.choice(SPEED_LIMITS))
        code = f"{code}.{data}"
    return {
        "class": code,
        "box": random_box(rng, img_w, img_h),
        "temporary": bool(rng.random() < 0.1),
        "occluded": bool(rng.random() < 0.2),
        "data": data,
    }


def detection_class(rng: np.random.Generator, code: str, coarsen_prob: float) -> str:
    if rng.random() >= coarsen_prob:
        return code
    parts = code.split(".")
    if len(parts) == 3:
        return ".".join(parts[:2])
    return parts[0] if rng.random() < 0.5 else code


def fmt_flag(value: bool) -> str:
    return "true" if value else "false"


def fmt_row(values) -> str:
    return "\t".join(f"{v:.2f}" if isinstance(v, float) else str(v) for v in values)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a synthetic icescore dataset")
    parser.add_argument("--out_dir", type=str, default="tools/out/synth_001")
    parser.add_argument("--n_frames", type=int, default=20)
    parser.add_argument("--n_sequences", type=int, default=2)
    parser.add_argument("--img_w", type=int, default=1280)
    parser.add_argument("--img_h", type=int, default=960)
    parser.add_argument("--max_signs", type=int, default=4, help="Max annotations per frame")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--jitter", type=float, default=0.04, help="Corner noise as a fraction of box size")
    parser.add_argument("--miss_prob", type=float, default=0.15)
    parser.add_argument("--coarsen_prob", type=float, default=0.1)
    parser.add_argument("--fp_rate", type=float, default=0.3, help="Mean spurious detections per frame")
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    out_dir = Path(args.out_dir)
    ann_root = out_dir / "annotations"

    solution_rows = [fmt_row(SOLUTION_HEADER)]
    n_gt = 0
    for i in range(args.n_frames):
        seq = f"seq_{i % max(args.n_sequences, 1):02d}"
        frame_id = f"{seq}/{i:06d}"

        annotations = [make_annotation(rng, args.img_w, args.img_h) for _ in range(int(rng.integers(0, args.max_signs + 1)))]
        n_gt += len(annotations)

        gt_rows = [fmt_row(GT_HEADER)]
        for a in annotations:
            gt_rows.append(
                fmt_row([a["class"], *a["box"], fmt_flag(a["temporary"]), fmt_flag(a["occluded"]), a["data"]])
            )
            if rng.random() < args.miss_prob:
                continue
            box = jitter_box(rng, a["box"], args.jitter)
            temporary = fmt_flag(a["temporary"]) if rng.random() < 0.5 else ""
            solution_rows.append(
                fmt_row([frame_id, *box, detection_class(rng, a["class"], args.coarsen_prob), temporary, a["data"]])
            )

        for _ in range(int(rng.poisson(args.fp_rate))):
            code = str(rng.choice(DEFAULT_ALLOWED_CLASSES))
            solution_rows.append(fmt_row([frame_id, *random_box(rng, args.img_w, args.img_h), code, "", ""]))

        path = ann_root / seq / f"{i:06d}.tsv"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(gt_rows) + "\n", encoding="utf-8")

    solution_path = out_dir / "solution.tsv"
    solution_path.write_text("\n".join(solution_rows) + "\n", encoding="utf-8")
    print(f"Wrote {args.n_frames} frames ({n_gt} signs) to {ann_root}")
    print(f"Wrote {len(solution_rows) - 1} detections to {solution_path}")


if __name__ == "__main__":
    main()
