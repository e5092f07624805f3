# autograde/ocr/column_inference.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from autograde.ocr.row_clustering import Row

X_TOLERANCE = 20.0
SAMPLE_ROWS = 5
MIN_OBSERVATIONS = 2


def round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


@dataclass
class ColumnGroup:
    center_x: float
    positions: List[int] = field(default_factory=list)

    def add(self, x: int) -> None:
        self.positions.append(x)
        self.center_x = float(np.mean(self.positions))


def _group_positions(xs: Sequence[int], tolerance: float) -> List[ColumnGroup]:
    """Greedy 1D grouping against each group's running mean."""
    groups: List[ColumnGroup] = []
    for x in sorted(xs):
        match = next((g for g in groups if abs(g.center_x - x) <= tolerance), None)
        if match is not None:
            match.add(x)
        else:
            groups.append(ColumnGroup(center_x=float(x), positions=[x]))
    return groups


def infer_column_positions(
    rows: Sequence[Row],
    sample_rows: int = SAMPLE_ROWS,
    x_tolerance: float = X_TOLERANCE,
    min_observations: int = MIN_OBSERVATIONS,
) -> List[int]:
    """
    Infer the printed template's column centers from the first few rows.

    Column positions belong to the template, not to individual answers, so a
    small sample is enough. Groups seen fewer than min_observations times are
    dropped as noise. The result may be shorter than the template's real
    column count; callers treat missing columns as unmarked.
    """
    sample = rows[: min(sample_rows, len(rows))]
    xs = [round_half_up(obj.center_x) for row in sample for obj in row.text_objects]
    if not xs:
        return []

    groups = _group_positions(xs, x_tolerance)
    kept = [g for g in groups if len(g.positions) >= min_observations]
    kept.sort(key=lambda g: g.center_x)
    return [round_half_up(g.center_x) for g in kept]
