"""Value types shared by the record source, the matcher and the aggregator.

Typical flow:
1. The record source builds one :class:`FrameRecord` per frame.
2. :func:`icescore.matcher.match_frame` turns it into selected :class:`Hit` values.
3. :func:`icescore.aggregate.update_score` folds them into :class:`ScoreStats`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping

from .errors import RecordError


NA_TOKEN = "NA"


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned box in pixel coordinates (top-left, bottom-right)."""

    xtl: float
    ytl: float
    xbr: float
    ybr: float

    @property
    def width(self) -> float:
        return self.xbr - self.xtl

    @property
    def height(self) -> float:
        return self.ybr - self.ytl

    @property
    def area(self) -> float:
        return self.width * self.height

    def normalized(self) -> "BoundingBox":
        """Return a box with `xtl <= xbr` and `ytl <= ybr`, swapping edges if needed."""
        xtl, xbr = (self.xtl, self.xbr) if self.xtl <= self.xbr else (self.xbr, self.xtl)
        ytl, ybr = (self.ytl, self.ybr) if self.ytl <= self.ybr else (self.ybr, self.ytl)
        return BoundingBox(xtl, ytl, xbr, ybr)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.xtl, self.ytl, self.xbr, self.ybr)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BoundingBox":
        return cls(
            xtl=float(data["xtl"]),
            ytl=float(data["ytl"]),
            xbr=float(data["xbr"]),
            ybr=float(data["ybr"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "xtl": float(self.xtl),
            "ytl": float(self.ytl),
            "xbr": float(self.xbr),
            "ybr": float(self.ybr),
        }


@dataclass(frozen=True, slots=True)
class SignClass:
    """Hierarchical road-sign class code.

    `segments` holds one to three non-negative integers (`5`, `5.19`,
    `3.24.40`). The empty tuple is the not-applicable class, available as
    :data:`SignClass.NA`.
    """

    segments: tuple[int, ...] = ()

    NA: ClassVar["SignClass"]

    def __post_init__(self) -> None:
        if len(self.segments) > 3:
            raise ValueError(f"sign class has too many segments: {self.segments}")
        if any(not isinstance(s, int) or s < 0 for s in self.segments):
            raise ValueError(f"sign class segments must be non-negative ints: {self.segments}")

    @classmethod
    def parse(cls, text: str) -> "SignClass":
        """Parse `NA` or 1-3 dot-separated non-negative integers."""
        value = str(text).strip()
        if value == NA_TOKEN:
            return cls.NA
        parts = value.split(".")
        if not 1 <= len(parts) <= 3 or not all(p.isdigit() and p.isascii() for p in parts):
            raise RecordError(f"invalid sign class: {text!r}")
        return cls(tuple(int(p) for p in parts))

    @property
    def arity(self) -> int:
        return len(self.segments)

    @property
    def is_na(self) -> bool:
        return not self.segments

    @property
    def first(self) -> int | None:
        return self.segments[0] if self.segments else None

    def truncate(self) -> "SignClass":
        """Drop the third segment; other codes are returned unchanged."""
        if len(self.segments) == 3:
            return SignClass(self.segments[:2])
        return self

    def __str__(self) -> str:
        if self.is_na:
            return NA_TOKEN
        return ".".join(str(s) for s in self.segments)


SignClass.NA = SignClass(())
NA = SignClass.NA


@dataclass(frozen=True, slots=True)
class GroundTruthAnnotation:
    """One curated sign annotation."""

    bbox: BoundingBox
    sign_class: SignClass
    temporary: bool = False
    occluded: bool = False
    data: str | None = None


@dataclass(frozen=True, slots=True)
class Detection:
    """One submitted detection. `temporary` is None when the submission does not say."""

    bbox: BoundingBox
    sign_class: SignClass
    temporary: bool | None = None
    data: str | None = None


@dataclass(slots=True)
class FrameRecord:
    """Ground truth and detections of one image."""

    frame_id: str
    ground_truth: list[GroundTruthAnnotation] = field(default_factory=list)
    detections: list[Detection] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Hit:
    """A compatible, above-threshold (ground truth, detection) pairing."""

    gt_idx: int
    det_idx: int
    iou: float
    score: float
    shape_score: float
    k1: int
    k2: int
    k3: int


@dataclass(slots=True)
class ClassScore:
    """Score and penalty accumulated for one (truncated) sign class."""

    score: float = 0.0
    penalty: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"score": float(self.score), "penalty": float(self.penalty)}


@dataclass(slots=True)
class ScoreStats:
    """Running totals for a whole submission.

    Only ever receives additive updates, so partial stats computed for
    disjoint sets of frames can be combined with :meth:`merge` in any order.
    """

    score: float = 0.0
    penalty: float = 0.0
    per_class: dict[SignClass, ClassScore] = field(default_factory=dict)

    def bucket(self, sign_class: SignClass) -> ClassScore:
        entry = self.per_class.get(sign_class)
        if entry is None:
            entry = self.per_class[sign_class] = ClassScore()
        return entry

    def merge(self, other: "ScoreStats") -> "ScoreStats":
        """Add `other` into this accumulator and return it."""
        self.score += other.score
        self.penalty += other.penalty
        for sign_class, entry in other.per_class.items():
            mine = self.bucket(sign_class)
            mine.score += entry.score
            mine.penalty += entry.penalty
        return self

    def sorted_classes(self) -> list[SignClass]:
        return sorted(self.per_class, key=lambda c: (c.is_na, c.segments))

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": float(self.score),
            "penalty": float(self.penalty),
            "per_class": {str(c): self.per_class[c].to_dict() for c in self.sorted_classes()},
        }
