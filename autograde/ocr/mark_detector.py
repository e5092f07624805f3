# autograde/ocr/mark_detector.py
"""
Mark detection for one (row, column) cell.

Two independent signals are combined with OR:
  - GlyphMarkDetector: OCR read an explicit mark glyph (X, check, bullet...).
  - LowConfidenceMarkDetector: a short, low-confidence read. A solidly filled
    bubble tends to come back as low-confidence garbage rather than a glyph,
    so low confidence counts as evidence of a mark here.

False positives and negatives are expected; results go to a human reviewer.
"""
from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from autograde.models.constants import MARK_GLYPHS
from autograde.models.ocr import TextObject
from autograde.ocr.row_clustering import Row

MARK_X_TOLERANCE = 25.0
LOW_CONFIDENCE_THRESHOLD = 0.5
LOW_CONFIDENCE_MAX_TEXT_LEN = 2


class MarkDetector(Protocol):
    def is_mark(self, obj: TextObject) -> bool:
        ...


class GlyphMarkDetector:
    def __init__(self, glyphs: Iterable[str] = MARK_GLYPHS):
        self.glyphs = [g.upper() for g in glyphs]

    def is_mark(self, obj: TextObject) -> bool:
        text = obj.text.strip().upper()
        return any(g in text for g in self.glyphs)


class LowConfidenceMarkDetector:
    def __init__(
        self,
        threshold: float = LOW_CONFIDENCE_THRESHOLD,
        max_text_len: int = LOW_CONFIDENCE_MAX_TEXT_LEN,
    ):
        self.threshold = threshold
        self.max_text_len = max_text_len

    def is_mark(self, obj: TextObject) -> bool:
        return obj.confidence < self.threshold and len(obj.text.strip()) <= self.max_text_len


class AnyMarkDetector:
    def __init__(self, detectors: Sequence[MarkDetector]):
        self.detectors = list(detectors)

    def is_mark(self, obj: TextObject) -> bool:
        return any(d.is_mark(obj) for d in self.detectors)


def default_mark_detector(
    low_confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD,
    low_confidence_max_text_len: int = LOW_CONFIDENCE_MAX_TEXT_LEN,
) -> AnyMarkDetector:
    return AnyMarkDetector([
        GlyphMarkDetector(),
        LowConfidenceMarkDetector(low_confidence_threshold, low_confidence_max_text_len),
    ])


_DEFAULT_DETECTOR = default_mark_detector()


def is_column_marked(
    row: Row,
    column_positions: Sequence[float],
    column_index: int,
    x_tolerance: float = MARK_X_TOLERANCE,
    detector: MarkDetector | None = None,
) -> bool:
    """Out-of-range column indices read as unmarked, never as an error."""
    if column_index < 0 or column_index >= len(column_positions):
        return False

    column_x = column_positions[column_index]
    detector = detector or _DEFAULT_DETECTOR

    for obj in row.text_objects:
        if abs(obj.center_x - column_x) > x_tolerance:
            continue
        if detector.is_mark(obj):
            return True
    return False
