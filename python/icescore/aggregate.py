"""Fold per-frame matching results into submission-wide score stats."""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
import logging
from typing import Callable, Iterable

from .config import ScoringConfig
from .matcher import FrameResult, match_frame
from .types import BoundingBox, FrameRecord, ScoreStats, SignClass


logger = logging.getLogger(__name__)

FrameCallback = Callable[[FrameRecord, FrameResult], None]


@dataclass(frozen=True, slots=True)
class DiagnosticRow:
    """Verbose per-detection outcome. Rule fields are None for unmatched detections."""

    score: float
    bbox: BoundingBox
    sign_class: SignClass
    matched: bool
    shape_score: float | None = None
    k1: int | None = None
    k2: int | None = None
    k3: int | None = None


def update_score(stats: ScoreStats, frame: FrameRecord, result: FrameResult, config: ScoringConfig) -> None:
    """Add one frame's selected hits and false-positive penalties to `stats`.

    Buckets are keyed by the detection's class truncated to two segments.
    Ground truth left without a detection costs nothing.
    """
    for hit in result.selected:
        stats.score += hit.score
        sign_class = frame.detections[hit.det_idx].sign_class.truncate()
        stats.bucket(sign_class).score += hit.score

    for det_idx in result.leftovers:
        stats.score -= config.fp_penalty
        stats.penalty += config.fp_penalty
        entry = stats.bucket(frame.detections[det_idx].sign_class.truncate())
        entry.score -= config.fp_penalty
        entry.penalty += config.fp_penalty


def diagnostic_rows(frame: FrameRecord, result: FrameResult, config: ScoringConfig) -> list[DiagnosticRow]:
    rows: list[DiagnosticRow] = []
    for det_idx, det in enumerate(frame.detections):
        hit = result.hit_for_detection(det_idx)
        if hit is None:
            rows.append(DiagnosticRow(-config.fp_penalty, det.bbox, det.sign_class, matched=False))
        else:
            rows.append(
                DiagnosticRow(
                    hit.score,
                    det.bbox,
                    det.sign_class,
                    matched=True,
                    shape_score=hit.shape_score,
                    k1=hit.k1,
                    k2=hit.k2,
                    k3=hit.k3,
                )
            )
    return rows


def score_frame(frame: FrameRecord, config: ScoringConfig) -> tuple[ScoreStats, FrameResult]:
    """Score one frame in isolation."""
    result = match_frame(frame, config)
    stats = ScoreStats()
    update_score(stats, frame, result, config)
    return stats, result


def score_frames(
    frames: Iterable[FrameRecord],
    config: ScoringConfig,
    *,
    max_workers: int | None = None,
    on_frame: FrameCallback | None = None,
) -> ScoreStats:
    """Score every frame and fold the results.

    With `max_workers > 1` frames are matched in worker processes; partial
    stats are still merged in input order so the totals do not depend on
    scheduling. `on_frame` is called in input order with each frame's result.
    """
    frames = list(frames)
    stats = ScoreStats()

    if max_workers is not None and max_workers > 1 and len(frames) > 1:
        logger.debug("scoring %d frames with %d workers", len(frames), max_workers)
        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            partials = list(pool.map(score_frame, frames, [config] * len(frames)))
    else:
        partials = [score_frame(frame, config) for frame in frames]

    for frame, (partial, result) in zip(frames, partials):
        stats.merge(partial)
        if on_frame is not None:
            on_frame(frame, result)
    return stats
