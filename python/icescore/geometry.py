"""Box overlap and the geometric part of the pair score."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import ContractViolation
from .types import BoundingBox


def compute_iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection over union of two boxes.

    Boxes that only touch, or do not overlap on both axes, give exactly 0.
    """
    area_a = (a.xbr - a.xtl) * (a.ybr - a.ytl)
    area_b = (b.xbr - b.xtl) * (b.ybr - b.ytl)

    xtl = max(a.xtl, b.xtl)
    xbr = min(a.xbr, b.xbr)
    ytl = max(a.ytl, b.ytl)
    ybr = min(a.ybr, b.ybr)
    if xtl < xbr and ytl < ybr:
        inters = (xbr - xtl) * (ybr - ytl)
        return inters / (area_a + area_b - inters)
    return 0.0


def _as_array(boxes: Sequence[BoundingBox]) -> np.ndarray:
    if not boxes:
        return np.zeros((0, 4), dtype=np.float64)
    return np.array([b.as_tuple() for b in boxes], dtype=np.float64)


def iou_matrix(boxes_a: Sequence[BoundingBox], boxes_b: Sequence[BoundingBox]) -> np.ndarray:
    """Pairwise IoU, shape `(len(boxes_a), len(boxes_b))`.

    Elementwise equal to :func:`compute_iou`.
    """
    a = _as_array(boxes_a)[:, None, :]
    b = _as_array(boxes_b)[None, :, :]

    area_a = (a[..., 2] - a[..., 0]) * (a[..., 3] - a[..., 1])
    area_b = (b[..., 2] - b[..., 0]) * (b[..., 3] - b[..., 1])

    xtl = np.maximum(a[..., 0], b[..., 0])
    ytl = np.maximum(a[..., 1], b[..., 1])
    xbr = np.minimum(a[..., 2], b[..., 2])
    ybr = np.minimum(a[..., 3], b[..., 3])

    overlap = (xtl < xbr) & (ytl < ybr)
    inters = np.where(overlap, (xbr - xtl) * (ybr - ytl), 0.0)
    union = area_a + area_b - inters
    out = np.zeros(overlap.shape, dtype=np.float64)
    np.divide(inters, union, out=out, where=overlap)
    return out


def shape_score_from_iou(iou: float, iou_low: float, iou_high: float) -> float:
    """Map IoU to the shape score.

    0 at `iou_low`, rising along a fourth-root curve to 1 at `iou_high`, and 1
    above it. Calling this below `iou_low` is a :class:`ContractViolation`:
    candidates are always filtered by `iou >= iou_low` first.
    """
    if iou > iou_high:
        return 1.0
    if iou >= iou_low:
        return ((iou - iou_low) / (iou_high - iou_low)) ** 0.25
    raise ContractViolation(f"expected IoU >= {iou_low}, got {iou}")
