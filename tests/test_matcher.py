from __future__ import annotations

import pytest

from icescore import (
    BoundingBox,
    ContractViolation,
    Detection,
    FrameRecord,
    GroundTruthAnnotation,
    Hit,
    ScoringConfig,
    SignClass,
    collect_hits,
    match_frame,
    select_hits,
)
from icescore.matcher import final_score


CONFIG = ScoringConfig(iou_low=0.5, iou_high=0.7, fp_penalty=3.0)


def _gt(cls: str, box: tuple[float, float, float, float], **kwargs) -> GroundTruthAnnotation:
    return GroundTruthAnnotation(BoundingBox(*box), SignClass.parse(cls), **kwargs)


def _det(cls: str, box: tuple[float, float, float, float], **kwargs) -> Detection:
    return Detection(BoundingBox(*box), SignClass.parse(cls), **kwargs)


def _hit(gt_idx: int, det_idx: int, iou: float, score: float = 1.0) -> Hit:
    return Hit(gt_idx=gt_idx, det_idx=det_idx, iou=iou, score=score, shape_score=score, k1=0, k2=0, k3=0)


def test_final_score_scaling() -> None:
    assert final_score(1.0, 0, 0, 0) == pytest.approx(1.0)
    assert final_score(0.8, -20, 0, 0) == pytest.approx(0.64)
    assert final_score(1.0, 0, 200, 100) == pytest.approx(4.0)
    assert final_score(1.0, -70, -50, 0) == 0.0
    assert final_score(1.0, -50, -50, 0) == 0.0
    assert final_score(1.0, -70, -20, 0) == pytest.approx(0.1)


def test_collect_hits_identical_pair() -> None:
    hits = collect_hits([_gt("5.19", (0, 0, 10, 10))], [_det("5.19", (0, 0, 10, 10))], CONFIG)
    assert hits == [Hit(gt_idx=0, det_idx=0, iou=1.0, score=1.0, shape_score=1.0, k1=0, k2=0, k3=0)]


def test_collect_hits_skips_incompatible_and_low_iou_pairs() -> None:
    gts = [_gt("5.19", (0, 0, 10, 10))]
    dets = [
        _det("2.1", (0, 0, 10, 10)),  # incompatible class
        _det("5.19", (5, 0, 15, 10)),  # IoU 1/3
        _det("5.19", (0, 0, 10, 9)),  # IoU 0.9
    ]
    hits = collect_hits(gts, dets, CONFIG)
    assert [(h.gt_idx, h.det_idx) for h in hits] == [(0, 2)]
    assert hits[0].iou == pytest.approx(0.9)
    assert hits[0].score == pytest.approx(1.0)


def test_collect_hits_applies_all_modifiers() -> None:
    gts = [_gt("3.24.40", (0, 0, 10, 10), temporary=True, data="40")]
    dets = [_det("3.24", (0, 0, 10, 10), temporary=True, data=" 40 ")]
    (hit,) = collect_hits(gts, dets, CONFIG)
    assert (hit.k1, hit.k2, hit.k3) == (-20, 200, 100)
    assert hit.score == pytest.approx(3.8)


def test_not_applicable_ground_truth_scores_zero_but_matches() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("NA", (0, 0, 10, 10))],
        detections=[_det("5.19", (0, 0, 10, 10))],
    )
    result = match_frame(frame, CONFIG)
    assert len(result.selected) == 1
    assert result.selected[0].score == 0.0
    assert result.selected[0].shape_score == 0.0
    assert result.leftovers == []


def test_modifiers_at_minus_hundred_still_match() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10))],
        detections=[_det("5", (0, 0, 10, 10), data="60")],
    )
    result = match_frame(frame, CONFIG)
    assert [h.det_idx for h in result.selected] == [0]
    assert result.selected[0].score == 0.0
    assert result.leftovers == []


def test_select_hits_is_one_to_one() -> None:
    hits = [
        _hit(0, 0, 0.9),
        _hit(0, 1, 0.8),
        _hit(1, 0, 0.85),
        _hit(1, 1, 0.6),
        _hit(2, 1, 0.7),
        _hit(2, 2, 0.55),
    ]
    selected = select_hits(hits)
    pairs = {(h.gt_idx, h.det_idx) for h in selected}
    assert pairs == {(0, 0), (2, 1)}
    assert len({h.gt_idx for h in selected}) == len(selected)
    assert len({h.det_idx for h in selected}) == len(selected)


def test_select_hits_empty() -> None:
    assert select_hits([]) == []


def test_selection_is_by_iou_not_by_score() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10))],
        detections=[
            _det("5", (0, 0, 10, 10)),  # IoU 1.0 but coarse class: score 0.3
            _det("5.19", (0, 0, 10, 9)),  # IoU 0.9, full score 1.0
        ],
    )
    result = match_frame(frame, CONFIG)
    assert [h.det_idx for h in result.selected] == [0]
    assert result.selected[0].score == pytest.approx(0.3)
    assert result.leftovers == [1]


def test_incompatible_frame_leaves_every_detection_over() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10)), _gt("2.1", (20, 20, 30, 30))],
        detections=[_det("3.1", (0, 0, 10, 10)), _det("NA", (20, 20, 30, 30))],
    )
    result = match_frame(frame, CONFIG)
    assert result.selected == []
    assert result.leftovers == [0, 1]


def test_two_signs_two_detections_cross_matched() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10)), _gt("5.19", (100, 0, 110, 10))],
        detections=[_det("5.19", (100, 0, 110, 10)), _det("5.19", (0, 0, 10, 10)), _det("5.19", (50, 50, 60, 60))],
    )
    result = match_frame(frame, CONFIG)
    assert sorted((h.gt_idx, h.det_idx) for h in result.selected) == [(0, 1), (1, 0)]
    assert result.leftovers == [2]
    assert result.hit_for_detection(1).gt_idx == 0
    assert result.hit_for_detection(2) is None


def test_unexpected_single_segment_annotation_aborts_matching() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("3", (0, 0, 10, 10))],
        detections=[_det("3.1", (50, 50, 60, 60))],
    )
    with pytest.raises(ContractViolation):
        match_frame(frame, CONFIG)


def test_pair_at_low_threshold_matches_with_zero_score() -> None:
    frame = FrameRecord(
        "seq/000001",
        ground_truth=[_gt("5.19", (0, 0, 10, 10))],
        detections=[_det("5.19", (0, 0, 10, 5))],
    )

    result = match_frame(frame, CONFIG)

    assert len(result.selected) == 1
    hit = result.selected[0]
    assert hit.iou == pytest.approx(0.5)
    assert hit.score == 0.0
    assert result.leftovers == []
