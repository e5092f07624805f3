# autograde/ocr/text_objects.py
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from autograde.models.ocr import BoundingBox, TextObject

Vertex = Tuple[Optional[float], Optional[float]]


def text_object_from_vertices(
    text: str,
    vertices: Sequence[Vertex],
    confidence: Optional[float] = None,
) -> TextObject:
    """
    Build a TextObject from a bounding polygon (usually 4 corners).
    Missing coordinates count as 0, the way Vision omits zero values.
    A missing or zero confidence means the provider did not report one.
    """
    xs = [float(x or 0) for x, _ in vertices] or [0.0]
    ys = [float(y or 0) for _, y in vertices] or [0.0]

    box = BoundingBox(min_x=min(xs), max_x=max(xs), min_y=min(ys), max_y=max(ys))
    return TextObject(
        text=(text or "").strip(),
        confidence=float(confidence) if confidence else 1.0,
        bounding_box=box,
    )


def text_objects_from_annotations(
    annotations: Iterable[Tuple[str, Sequence[Vertex], Optional[float]]],
) -> List[TextObject]:
    """
    annotations: (description, vertices, confidence) in provider order.
    The first annotation is the full-page text and is skipped.
    """
    out: List[TextObject] = []
    for idx, (text, vertices, confidence) in enumerate(annotations):
        if idx == 0:
            continue
        obj = text_object_from_vertices(text, vertices, confidence)
        if obj.text:
            out.append(obj)
    return out
