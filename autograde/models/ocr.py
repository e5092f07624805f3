# autograde/models/ocr.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in image pixel coordinates."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def center_x(self) -> float:
        return (self.min_x + self.max_x) / 2

    @property
    def center_y(self) -> float:
        return (self.min_y + self.max_y) / 2

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def to_dict(self) -> Dict[str, float]:
        return {
            "minX": self.min_x,
            "maxX": self.max_x,
            "minY": self.min_y,
            "maxY": self.max_y,
            "centerX": self.center_x,
            "centerY": self.center_y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class TextObject:
    """One recognized text fragment. Created once per OCR response."""

    text: str
    confidence: float
    bounding_box: BoundingBox

    @property
    def center_x(self) -> float:
        return self.bounding_box.center_x

    @property
    def center_y(self) -> float:
        return self.bounding_box.center_y

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "boundingBox": self.bounding_box.to_dict(),
        }
