# autograde/ocr/row_clustering.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from autograde.models.ocr import TextObject
from autograde.utils.text_tools import row_text

Y_TOLERANCE = 15.0


@dataclass
class Row:
    """Horizontal band of text objects believed to be one student's line."""

    text_objects: List[TextObject] = field(default_factory=list)
    min_y: float = 0.0
    max_y: float = 0.0
    center_y: float = 0.0

    @classmethod
    def start(cls, obj: TextObject) -> "Row":
        box = obj.bounding_box
        return cls(
            text_objects=[obj],
            min_y=box.min_y,
            max_y=box.max_y,
            center_y=box.center_y,
        )

    def add(self, obj: TextObject) -> None:
        box = obj.bounding_box
        self.text_objects.append(obj)
        self.min_y = min(self.min_y, box.min_y)
        self.max_y = max(self.max_y, box.max_y)
        self.center_y = (self.min_y + self.max_y) / 2

    @property
    def texts(self) -> List[str]:
        return [o.text for o in self.text_objects]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minY": self.min_y,
            "maxY": self.max_y,
            "centerY": self.center_y,
            "text": row_text(self.text_objects),
            "textObjects": [o.to_dict() for o in self.text_objects],
        }


def cluster_into_rows(
    text_objects: Sequence[TextObject],
    y_tolerance: float = Y_TOLERANCE,
) -> List[Row]:
    """
    Group text objects into rows, top to bottom.

    Objects are visited by ascending center Y. An object joins the current row
    when its center is within y_tolerance of the row's center (which moves as
    the row grows); otherwise it starts a new row. Members of each row end up
    sorted left to right. Every input object lands in exactly one row.
    """
    if not text_objects:
        return []

    ordered = sorted(text_objects, key=lambda o: o.center_y)

    rows: List[Row] = []
    current: Row | None = None
    for obj in ordered:
        if current is not None and abs(obj.center_y - current.center_y) <= y_tolerance:
            current.add(obj)
        else:
            current = Row.start(obj)
            rows.append(current)

    for row in rows:
        row.text_objects.sort(key=lambda o: o.center_x)

    return rows
