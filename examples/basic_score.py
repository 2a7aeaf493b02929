#!/usr/bin/env python3
"""Minimal in-memory scoring example.

Run from repository root after:
  pip install -e .

Example:
  python examples/basic_score.py
"""

from __future__ import annotations

import icescore
from icescore import BoundingBox, Detection, FrameRecord, GroundTruthAnnotation, SignClass


def main() -> None:
    frame = FrameRecord(
        "2018-02-13_1418_left/000032",
        ground_truth=[
            GroundTruthAnnotation(BoundingBox(0, 0, 10, 10), SignClass.parse("5.19")),
            GroundTruthAnnotation(BoundingBox(40, 10, 60, 30), SignClass.parse("3.24.40"), data="40"),
        ],
        detections=[
            Detection(BoundingBox(0, 0, 10, 10), SignClass.parse("5.19")),
            Detection(BoundingBox(41, 10, 60, 30), SignClass.parse("3.24"), data="40"),
            Detection(BoundingBox(100, 100, 120, 120), SignClass.parse("2.1")),
        ],
    )

    config = icescore.ScoringConfig()
    stats = icescore.score_frames([frame], config)

    print(f"Total score: {stats.score:.3f}")
    print(f"Penalty:     {stats.penalty:.3f}")
    for sign_class in stats.sorted_classes():
        entry = stats.per_class[sign_class]
        print(f"  {sign_class}: score={entry.score:.3f} penalty={entry.penalty:.3f}")


if __name__ == "__main__":
    main()
