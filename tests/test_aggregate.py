from __future__ import annotations

import pytest

from icescore import (
    BoundingBox,
    Detection,
    FrameRecord,
    GroundTruthAnnotation,
    ScoreStats,
    ScoringConfig,
    SignClass,
    diagnostic_rows,
    match_frame,
    score_frame,
    score_frames,
    update_score,
)


CONFIG = ScoringConfig(iou_low=0.5, iou_high=0.7, fp_penalty=3.0)


def _gt(cls: str, box: tuple[float, float, float, float], **kwargs) -> GroundTruthAnnotation:
    return GroundTruthAnnotation(BoundingBox(*box), SignClass.parse(cls), **kwargs)


def _det(cls: str, box: tuple[float, float, float, float], **kwargs) -> Detection:
    return Detection(BoundingBox(*box), SignClass.parse(cls), **kwargs)


def _mixed_frame(frame_id: str = "seq/000001") -> FrameRecord:
    return FrameRecord(
        frame_id,
        ground_truth=[
            _gt("5.19", (0, 0, 10, 10)),
            _gt("3.24.40", (100, 100, 120, 120), data="40"),
            _gt("2.1", (200, 200, 220, 220)),  # missed
        ],
        detections=[
            _det("5.19", (0, 0, 10, 9)),
            _det("3.24.40", (100, 100, 120, 120), data="40"),
            _det("5.19", (300, 300, 310, 310)),
            _det("3.24.50", (400, 400, 410, 410)),
        ],
    )


def test_single_exact_match_scores_one() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10), temporary=False)],
        detections=[_det("5.19", (0, 0, 10, 10))],
    )
    stats = score_frames([frame], CONFIG)
    assert stats.score == pytest.approx(1.0)
    assert stats.penalty == 0.0
    assert stats.to_dict()["per_class"] == {"5.19": {"score": pytest.approx(1.0), "penalty": 0.0}}


def test_empty_ground_truth_charges_every_detection() -> None:
    frame = FrameRecord(
        "f",
        detections=[_det("5.19", (0, 0, 10, 10)), _det("2.1", (0, 0, 10, 10)), _det("2.1", (5, 5, 20, 20))],
    )
    stats = score_frames([frame], CONFIG)
    assert stats.score == pytest.approx(-9.0)
    assert stats.penalty == pytest.approx(9.0)
    assert stats.per_class[SignClass.parse("2.1")].penalty == pytest.approx(6.0)
    assert stats.per_class[SignClass.parse("2.1")].score == pytest.approx(-6.0)


def test_misses_cost_nothing() -> None:
    frame = FrameRecord("f", ground_truth=[_gt("5.19", (0, 0, 10, 10)), _gt("2.1", (0, 0, 10, 10))])
    stats = score_frames([frame], CONFIG)
    assert stats.score == 0.0
    assert stats.penalty == 0.0
    assert stats.per_class == {}


def test_total_is_hit_scores_minus_penalties() -> None:
    frame = _mixed_frame()
    result = match_frame(frame, CONFIG)
    stats = ScoreStats()
    update_score(stats, frame, result, CONFIG)

    expected = sum(h.score for h in result.selected) - CONFIG.fp_penalty * len(result.leftovers)
    assert stats.score == pytest.approx(expected)
    assert stats.penalty == pytest.approx(CONFIG.fp_penalty * len(result.leftovers))
    # k2 +200 on the exact speed-limit match
    assert stats.score == pytest.approx(1.0 + 3.0 - 6.0)


def test_per_class_buckets_use_truncated_detection_class() -> None:
    stats, _ = score_frame(_mixed_frame(), CONFIG)
    table = stats.to_dict()["per_class"]
    assert set(table) == {"3.24", "5.19"}
    assert table["3.24"]["score"] == pytest.approx(3.0 - 3.0)
    assert table["3.24"]["penalty"] == pytest.approx(3.0)
    assert table["5.19"]["score"] == pytest.approx(1.0 - 3.0)
    assert table["5.19"]["penalty"] == pytest.approx(3.0)


def test_not_applicable_match_is_neither_scored_nor_penalised() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("NA", (0, 0, 10, 10))],
        detections=[_det("5.19", (0, 0, 10, 10))],
    )
    stats = score_frames([frame], CONFIG)
    assert stats.score == 0.0
    assert stats.penalty == 0.0


def test_incompatible_classes_turn_overlapping_detections_into_leftovers() -> None:
    frame = FrameRecord(
        "f",
        ground_truth=[_gt("5.19", (0, 0, 10, 10))],
        detections=[_det("3.1", (0, 0, 10, 10)), _det("2.1", (0, 0, 10, 10))],
    )
    stats = score_frames([frame], CONFIG)
    assert stats.score == pytest.approx(-6.0)
    assert stats.penalty == pytest.approx(6.0)


def test_score_frames_accumulates_across_frames_and_reports_in_order() -> None:
    frames = [_mixed_frame("a"), _mixed_frame("b"), FrameRecord("c", detections=[_det("2.1", (0, 0, 5, 5))])]
    seen: list[str] = []
    stats = score_frames(frames, CONFIG, on_frame=lambda frame, result: seen.append(frame.frame_id))
    assert seen == ["a", "b", "c"]
    assert stats.score == pytest.approx(2 * (1.0 + 3.0 - 6.0) - 3.0)
    assert stats.penalty == pytest.approx(2 * 6.0 + 3.0)


def test_score_frames_in_worker_processes_matches_sequential() -> None:
    frames = [_mixed_frame(f"seq/{i:06d}") for i in range(4)]
    sequential = score_frames(frames, CONFIG)
    parallel = score_frames(frames, CONFIG, max_workers=2)
    assert parallel.to_dict() == sequential.to_dict()


def test_diagnostic_rows_cover_every_detection() -> None:
    frame = _mixed_frame()
    rows = diagnostic_rows(frame, match_frame(frame, CONFIG), CONFIG)
    assert len(rows) == len(frame.detections)
    assert [r.matched for r in rows] == [True, True, False, False]
    assert rows[1].k2 == 200
    assert rows[1].score == pytest.approx(3.0)
    assert rows[2].score == -3.0
    assert rows[2].k1 is None and rows[2].shape_score is None
    assert rows[3].sign_class == SignClass.parse("3.24.50")
