"""Read ground truth and submissions from the challenge's tab-separated files.

Ground truth comes either as a directory with one `<frame>.tsv` file per
image (columns `class xtl ytl xbr ybr temporary occluded data`) or as a single
file with an extra leading `frame` column. A submission is one file with
columns `frame xtl ytl xbr ybr class temporary data`; `temporary` and `data`
may be omitted or left empty.
"""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Any, Iterator, Mapping

from .config import ScoringConfig
from .errors import RecordError
from .types import BoundingBox, Detection, FrameRecord, GroundTruthAnnotation, SignClass


logger = logging.getLogger(__name__)

GT_FRAME_COLUMNS = ("class", "xtl", "ytl", "xbr", "ybr")
SOLUTION_COLUMNS = ("frame", "xtl", "ytl", "xbr", "ybr", "class")

_TRUE = frozenset({"true", "1"})
_FALSE = frozenset({"false", "0"})

FrameIndex = dict[str, FrameRecord]


def _iter_rows(path: Path, required: tuple[str, ...]) -> Iterator[tuple[int, dict[str, str]]]:
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
        try:
            fieldnames = reader.fieldnames
            if fieldnames is None:
                # empty file: a frame without annotations
                return
            header = [name.strip() for name in fieldnames]
            missing = [name for name in required if name not in header]
            if missing:
                raise RecordError(f"missing columns: {', '.join(missing)}", path=path, line=1)
            reader.fieldnames = header
            for row in reader:
                # skip blank lines and trailing separators
                if not any((v or "").strip() for k, v in row.items() if k is not None):
                    continue
                yield reader.line_num, row
        except UnicodeDecodeError as exc:
            raise RecordError(f"not valid UTF-8: {exc.reason}", path=path) from None


def _field(row: Mapping[str, Any], name: str) -> str:
    value = row.get(name)
    return "" if value is None else str(value).strip()


def parse_flag(text: str) -> bool | None:
    """Parse `true`/`false` (or `1`/`0`); an empty field is None."""
    value = text.strip().lower()
    if not value:
        return None
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise RecordError(f"invalid boolean flag: {text!r}")


def parse_bbox(row: Mapping[str, Any]) -> BoundingBox:
    coords = []
    for name in ("xtl", "ytl", "xbr", "ybr"):
        text = _field(row, name)
        try:
            value = float(text)
        except ValueError:
            raise RecordError(f"{name} is not a number: {text!r}") from None
        if not math.isfinite(value):
            raise RecordError(f"{name} is not finite: {value}")
        coords.append(value)
    return BoundingBox(*coords).normalized()


def parse_class(text: str, config: ScoringConfig) -> SignClass:
    sign_class = SignClass.parse(config.resolve_alias(text.strip()))
    if not config.is_allowed(sign_class):
        raise RecordError(f"invalid sign class: {sign_class}")
    return sign_class


def _optional_data(row: Mapping[str, Any]) -> str | None:
    value = _field(row, "data")
    return value or None


def parse_annotation(row: Mapping[str, Any], config: ScoringConfig) -> GroundTruthAnnotation:
    return GroundTruthAnnotation(
        bbox=parse_bbox(row),
        sign_class=parse_class(_field(row, "class"), config),
        temporary=bool(parse_flag(_field(row, "temporary"))),
        occluded=bool(parse_flag(_field(row, "occluded"))),
        data=_optional_data(row),
    )


def parse_detection(row: Mapping[str, Any], config: ScoringConfig) -> Detection:
    return Detection(
        bbox=parse_bbox(row),
        sign_class=parse_class(_field(row, "class"), config),
        temporary=parse_flag(_field(row, "temporary")),
        data=_optional_data(row),
    )


def _frame_id_for(path: Path, root: Path) -> str:
    return path.relative_to(root).with_suffix("").as_posix()


def _read_gt_directory(root: Path, config: ScoringConfig) -> FrameIndex:
    index: FrameIndex = {}
    for path in sorted(root.rglob("*.tsv")):
        frame_id = _frame_id_for(path, root)
        record = index.setdefault(frame_id, FrameRecord(frame_id))
        for line, row in _iter_rows(path, GT_FRAME_COLUMNS):
            try:
                record.ground_truth.append(parse_annotation(row, config))
            except RecordError as exc:
                raise RecordError(str(exc), path=path, line=line) from None
    logger.debug("read %d ground-truth frames from %s", len(index), root)
    return index


def _read_gt_file(path: Path, config: ScoringConfig) -> FrameIndex:
    index: FrameIndex = {}
    for line, row in _iter_rows(path, ("frame",) + GT_FRAME_COLUMNS):
        frame_id = _field(row, "frame")
        try:
            annotation = parse_annotation(row, config)
        except RecordError as exc:
            raise RecordError(str(exc), path=path, line=line) from None
        index.setdefault(frame_id, FrameRecord(frame_id)).ground_truth.append(annotation)
    logger.debug("read %d ground-truth frames from %s", len(index), path)
    return index


def load_ground_truth(path: str | Path, config: ScoringConfig) -> FrameIndex:
    """Build the frame index from a ground-truth directory or file."""
    path = Path(path)
    if path.is_dir():
        return _read_gt_directory(path, config)
    if path.is_file():
        return _read_gt_file(path, config)
    raise FileNotFoundError(f"ground truth not found: {path}")


def load_submission(path: str | Path, index: FrameIndex, config: ScoringConfig) -> int:
    """Attach submission rows to `index`; returns the number of detections kept.

    Rows for frames without ground truth are ignored, as are detections whose
    box area is below `config.min_detection_area`.
    """
    path = Path(path)
    kept = 0
    unknown_frames = 0
    too_small = 0
    for line, row in _iter_rows(path, SOLUTION_COLUMNS):
        try:
            detection = parse_detection(row, config)
        except RecordError as exc:
            raise RecordError(str(exc), path=path, line=line) from None
        record = index.get(_field(row, "frame"))
        if record is None:
            unknown_frames += 1
            continue
        if detection.bbox.area < config.min_detection_area:
            too_small += 1
            continue
        record.detections.append(detection)
        kept += 1

    if unknown_frames:
        logger.warning("%s: ignored %d detections for frames without ground truth", path, unknown_frames)
    if too_small:
        logger.warning(
            "%s: dropped %d detections smaller than %.1f px^2", path, too_small, config.min_detection_area
        )
    return kept


def load_frames(gt_path: str | Path, submission_path: str | Path, config: ScoringConfig) -> list[FrameRecord]:
    """Read both sides and return the frames sorted by frame id."""
    index = load_ground_truth(gt_path, config)
    load_submission(submission_path, index, config)
    return [index[frame_id] for frame_id in sorted(index)]
