"""Per-frame candidate generation and greedy one-to-one assignment."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

from .config import ScoringConfig
from .geometry import iou_matrix, shape_score_from_iou
from .rules import compute_k1, compute_k2, compute_k3
from .types import Detection, FrameRecord, GroundTruthAnnotation, Hit


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FrameResult:
    """Matching outcome of one frame."""

    frame_id: str
    selected: list[Hit] = field(default_factory=list)
    leftovers: list[int] = field(default_factory=list)

    def hit_for_detection(self, det_idx: int) -> Hit | None:
        for hit in self.selected:
            if hit.det_idx == det_idx:
                return hit
        return None


def final_score(shape_score: float, k1: int, k2: int, k3: int) -> float:
    """Scale the shape score by the summed modifiers; 0 once they reach -100."""
    k = k1 + k2 + k3
    if k > -100:
        return shape_score * (100 + k) / 100
    return 0.0


def collect_hits(
    ground_truth: Sequence[GroundTruthAnnotation],
    detections: Sequence[Detection],
    config: ScoringConfig,
) -> list[Hit]:
    """Every compatible pair with `iou >= iou_low`, in ground-truth-major order."""
    ious = iou_matrix([g.bbox for g in ground_truth], [d.bbox for d in detections])

    hits: list[Hit] = []
    for gt_idx, gt in enumerate(ground_truth):
        for det_idx, det in enumerate(detections):
            k1 = compute_k1(gt.sign_class, det.sign_class)
            if k1 is None:
                continue
            iou = float(ious[gt_idx, det_idx])
            if iou < config.iou_low:
                continue
            if gt.sign_class.is_na:
                s = 0.0
            else:
                s = shape_score_from_iou(iou, config.iou_low, config.iou_high)
            k2 = compute_k2(gt, det)
            k3 = compute_k3(gt, det)
            hits.append(
                Hit(
                    gt_idx=gt_idx,
                    det_idx=det_idx,
                    iou=iou,
                    score=final_score(s, k1, k2, k3),
                    shape_score=s,
                    k1=k1,
                    k2=k2,
                    k3=k3,
                )
            )
    return hits


def select_hits(hits: Sequence[Hit]) -> list[Hit]:
    """Greedy one-to-one assignment by maximum IoU.

    Selection is by IoU, not by final score. Among exactly tied candidates the
    earliest one in `hits` wins. Quadratic in the number of candidates, which
    stays small per frame.
    """
    remaining = list(hits)
    selected: list[Hit] = []
    while remaining:
        best = max(remaining, key=lambda h: h.iou)
        selected.append(best)
        remaining = [h for h in remaining if h.gt_idx != best.gt_idx and h.det_idx != best.det_idx]
    return selected


def match_frame(frame: FrameRecord, config: ScoringConfig) -> FrameResult:
    """Match one frame's detections against its ground truth."""
    hits = collect_hits(frame.ground_truth, frame.detections, config)
    logger.debug("%s: hits: %s", frame.frame_id, hits)

    selected = select_hits(hits)
    logger.debug("%s: selected hits: %s", frame.frame_id, selected)

    matched = {h.det_idx for h in selected}
    leftovers = [i for i in range(len(frame.detections)) if i not in matched]
    logger.debug("%s: leftovers: %s", frame.frame_id, leftovers)

    return FrameResult(frame_id=frame.frame_id, selected=selected, leftovers=leftovers)
