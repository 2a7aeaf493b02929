"""Scoring configuration.

The competition constants (IoU thresholds, false-positive penalty, allowed
sign classes) live in one immutable :class:`ScoringConfig` value that is passed
to the record source, the matcher and the aggregator.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
import json
import math
from pathlib import Path
from typing import Any, Iterable, Mapping

from .errors import ConfigError, RecordError
from .types import SignClass


DEFAULT_ALLOWED_CLASSES: tuple[str, ...] = (
    "2.1",
    "2.4",
    "3.1",
    "3.24",
    "3.27",
    "4.1",
    "4.2",
    "5.19",
    "5.20",
    "8.22",
)
DEFAULT_IOU_LOW = 0.5
DEFAULT_IOU_HIGH = 0.7
DEFAULT_FP_PENALTY = 3.0


def _json_loads_path_or_text(path_or_json: str | Path) -> dict[str, Any]:
    if isinstance(path_or_json, Path):
        return json.loads(path_or_json.read_text(encoding="utf-8"))

    text = str(path_or_json)
    if text.lstrip().startswith("{"):
        return json.loads(text)

    return json.loads(Path(text).read_text(encoding="utf-8"))


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    """Scoring thresholds and record-source validation settings.

    Parameters
    ----------
    iou_low:
        Minimum IoU for a candidate pair. The shape score is 0 here.
    iou_high:
        IoU above which the shape score saturates to 1.
    fp_penalty:
        Penalty charged for every unmatched detection.
    allowed_classes:
        Class codes accepted by the record source. Empty disables the check.
    min_detection_area:
        Detections with a smaller box area are dropped while reading.
    class_aliases:
        Class remapping (`"from" -> "to"`) applied by the record source before
        validation.
    """

    iou_low: float = DEFAULT_IOU_LOW
    iou_high: float = DEFAULT_IOU_HIGH
    fp_penalty: float = DEFAULT_FP_PENALTY
    allowed_classes: tuple[str, ...] = DEFAULT_ALLOWED_CLASSES
    min_detection_area: float = 0.0
    class_aliases: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.allowed_classes, (str, Mapping)) or not isinstance(self.allowed_classes, Iterable):
            raise ConfigError(f"allowed_classes must be a list of class codes, got {self.allowed_classes!r}")
        if not isinstance(self.class_aliases, Mapping):
            raise ConfigError(f"class_aliases must be a mapping, got {self.class_aliases!r}")
        # frozen: normalise container fields through object.__setattr__
        object.__setattr__(self, "allowed_classes", tuple(str(c) for c in self.allowed_classes))
        object.__setattr__(self, "class_aliases", {str(k): str(v) for k, v in dict(self.class_aliases).items()})

        for name in ("iou_low", "iou_high", "fp_penalty", "min_detection_area"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"{name} must be a finite number, got {value!r}")
        if not 0.0 < self.iou_low < self.iou_high <= 1.0:
            raise ConfigError(
                f"expected 0 < iou_low < iou_high <= 1, got iou_low={self.iou_low} iou_high={self.iou_high}"
            )
        if self.fp_penalty < 0.0:
            raise ConfigError(f"fp_penalty must be non-negative, got {self.fp_penalty}")
        if self.min_detection_area < 0.0:
            raise ConfigError(f"min_detection_area must be non-negative, got {self.min_detection_area}")

        codes = list(self.allowed_classes)
        codes.extend(self.class_aliases.keys())
        codes.extend(self.class_aliases.values())
        for code in codes:
            try:
                SignClass.parse(code)
            except RecordError as exc:
                raise ConfigError(str(exc)) from exc

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoringConfig":
        """Overlay `data` on the defaults. Unknown keys are rejected."""
        if not isinstance(data, Mapping):
            raise ConfigError("config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path_or_json: str | Path) -> "ScoringConfig":
        """Load from JSON text or a JSON file path."""
        try:
            data = _json_loads_path_or_text(path_or_json)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"invalid config JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["allowed_classes"] = list(self.allowed_classes)
        out["class_aliases"] = dict(self.class_aliases)
        return out

    def updated(self, **overrides: Any) -> "ScoringConfig":
        """Return a copy with `overrides` applied; `None` values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)

    def resolve_alias(self, code: str) -> str:
        return self.class_aliases.get(code, code)

    def is_allowed(self, sign_class: SignClass) -> bool:
        """Whether the record source accepts `sign_class`.

        The not-applicable class is always accepted. A code is accepted when it
        or its two-segment truncation is listed; a single-segment code is
        accepted when some listed code falls under it.
        """
        if not self.allowed_classes or sign_class.is_na:
            return True
        if str(sign_class) in self.allowed_classes:
            return True
        if str(sign_class.truncate()) in self.allowed_classes:
            return True
        if sign_class.arity == 1:
            prefix = f"{sign_class.first}."
            return any(code.startswith(prefix) for code in self.allowed_classes)
        return False
