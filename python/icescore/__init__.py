"""icescore: scoring of road-sign detection submissions.

Matches submitted detections to curated ground truth frame by frame and
aggregates a total score, a false-positive penalty and per-class breakdowns.
"""

from .aggregate import DiagnosticRow, diagnostic_rows, score_frame, score_frames, update_score
from .config import ScoringConfig
from .errors import ConfigError, ContractViolation, RecordError, ScoringError
from .geometry import compute_iou, iou_matrix, shape_score_from_iou
from .matcher import FrameResult, collect_hits, match_frame, select_hits
from .records import load_frames, load_ground_truth, load_submission
from .report import print_diagnostics, print_report, stats_to_json
from .rules import compute_k1, compute_k2, compute_k3
from .types import (
    NA,
    BoundingBox,
    ClassScore,
    Detection,
    FrameRecord,
    GroundTruthAnnotation,
    Hit,
    ScoreStats,
    SignClass,
)

__version__ = "0.3.0"

__all__ = [
    "BoundingBox",
    "SignClass",
    "NA",
    "GroundTruthAnnotation",
    "Detection",
    "FrameRecord",
    "Hit",
    "ClassScore",
    "ScoreStats",
    "ScoringConfig",
    "ScoringError",
    "ContractViolation",
    "RecordError",
    "ConfigError",
    "compute_iou",
    "iou_matrix",
    "shape_score_from_iou",
    "compute_k1",
    "compute_k2",
    "compute_k3",
    "FrameResult",
    "collect_hits",
    "select_hits",
    "match_frame",
    "DiagnosticRow",
    "update_score",
    "diagnostic_rows",
    "score_frame",
    "score_frames",
    "load_ground_truth",
    "load_submission",
    "load_frames",
    "print_report",
    "print_diagnostics",
    "stats_to_json",
    "__version__",
]
