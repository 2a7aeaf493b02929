"""Compatibility modifiers between one annotation and one detection.

Each modifier is in percentage points and is added to 100 to scale the
shape score of a pair:

- k1: sign-class hierarchy (may reject the pair outright),
- k2: auxiliary text data agreement,
- k3: temporary-sign flag agreement.
"""

from __future__ import annotations

from .errors import ContractViolation
from .types import Detection, GroundTruthAnnotation, SignClass


UMBRELLA_CLASS = 8

K1_EXACT = 0
K1_MISSING_VARIANT = -20
K1_COARSE_ONLY = -70

K2_DATA_MATCH = 200
K2_DATA_MISMATCH = -50

K3_TEMPORARY_MATCH = 100
K3_TEMPORARY_MISMATCH = -50


def compute_k1(gt: SignClass, det: SignClass) -> int | None:
    """Class-hierarchy modifier, or None when the pair is incompatible."""
    if gt.arity in (2, 3) and det.arity == gt.arity and gt == det:
        return K1_EXACT
    if gt.arity == 3 and det.arity == 2 and gt.segments[:2] == det.segments:
        return K1_MISSING_VARIANT
    if gt.arity in (2, 3) and det.arity == 1 and gt.first == det.first:
        return K1_COARSE_ONLY
    if gt.arity == 1:
        if gt.first != UMBRELLA_CLASS:
            raise ContractViolation(f"unexpected annotation class: {gt}")
        if det.first == UMBRELLA_CLASS:
            return K1_EXACT
        return None
    if gt.is_na:
        return K1_EXACT
    return None


def normalize_data(text: str) -> str:
    return text.replace(" ", "").replace(",", ".").lower()


def compute_k2(gt: GroundTruthAnnotation, det: Detection) -> int:
    """Auxiliary data modifier (e.g. the value printed on a speed-limit sign)."""
    if det.data is None:
        return 0
    if gt.data is None:
        return K2_DATA_MISMATCH
    if normalize_data(gt.data) == normalize_data(det.data):
        return K2_DATA_MATCH
    return K2_DATA_MISMATCH


def compute_k3(gt: GroundTruthAnnotation, det: Detection) -> int:
    """Temporary-sign flag modifier. A detection that does not say scores 0."""
    if det.temporary is None:
        return 0
    if gt.temporary and det.temporary:
        return K3_TEMPORARY_MATCH
    if gt.temporary != det.temporary:
        return K3_TEMPORARY_MISMATCH
    return 0
