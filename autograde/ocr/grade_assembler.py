# autograde/ocr/grade_assembler.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from autograde.core.logger import get_logger
from autograde.models.grade_schemas import ProcessedGrade, RosterStudent
from autograde.ocr.mark_detector import MARK_X_TOLERANCE, MarkDetector, is_column_marked
from autograde.ocr.row_clustering import Row

logger = get_logger("grade_assembler")

# printed row number + student name
LEADING_COLUMNS = 2

_ROW_NUMBER_RX = re.compile(r"^\d{1,3}$")


# ---------------------------------------------------------------------------
# Row <-> roster correspondence
# ---------------------------------------------------------------------------
class RowMatcher(Protocol):
    def match(self, rows: Sequence[Row], roster_size: int) -> List[Optional[Row]]:
        """Return one entry per roster index: the student's row, or None."""
        ...


class PositionalRowMatcher:
    """
    Row i belongs to student i in roster order.
    This assumes the scan kept the printed order and that no extra rows
    (headers, stray marks) were detected above the students.
    """

    def __init__(self, skip_rows: int = 0):
        self.skip_rows = max(0, skip_rows)

    def match(self, rows: Sequence[Row], roster_size: int) -> List[Optional[Row]]:
        usable = list(rows[self.skip_rows:])
        return [usable[i] if i < len(usable) else None for i in range(roster_size)]


class RowNumberMatcher:
    """
    Anchors rows on the printed row number in the leftmost cell ("1", "2", ...).
    Rows without a readable number are ignored; the first row claiming a
    number wins.
    """

    def match(self, rows: Sequence[Row], roster_size: int) -> List[Optional[Row]]:
        by_index: Dict[int, Row] = {}
        for row in rows:
            if not row.text_objects:
                continue
            label = row.text_objects[0].text.strip().rstrip(".")
            if not _ROW_NUMBER_RX.match(label):
                continue
            idx = int(label) - 1
            if 0 <= idx < roster_size and idx not in by_index:
                by_index[idx] = row
        return [by_index.get(i) for i in range(roster_size)]


def row_matcher_for(mode: str, skip_rows: int = 0) -> RowMatcher:
    if mode == "row_number":
        return RowNumberMatcher()
    if mode != "positional":
        logger.warning("Unknown row matching mode '%s', using positional", mode)
    return PositionalRowMatcher(skip_rows=skip_rows)


# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ColumnLayout:
    scale_size: int
    status_count: int
    leading_columns: int = LEADING_COLUMNS

    @property
    def expected_columns(self) -> int:
        return self.leading_columns + self.scale_size + self.status_count

    def score_column(self, scale_index: int) -> int:
        return self.leading_columns + scale_index

    def status_column(self, status_index: int) -> int:
        return self.leading_columns + self.scale_size + status_index


def check_column_count(layout: ColumnLayout, detected: int) -> str:
    """
    Returns "ok", "under" or "over". Missing columns read as unmarked and
    extra columns to the right are ignored, so this only reports.
    """
    expected = layout.expected_columns
    if detected < expected:
        logger.warning(
            "Detected %d columns, layout expects %d; trailing options will read as unmarked",
            detected, expected,
        )
        return "under"
    if detected > expected:
        logger.warning(
            "Detected %d columns, layout expects %d; extra columns are ignored",
            detected, expected,
        )
        return "over"
    return "ok"


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------
def empty_grade(student: RosterStudent) -> ProcessedGrade:
    return ProcessedGrade(student_id=student.student_id, student_name=student.full_name)


def grade_row(
    student: RosterStudent,
    row: Row,
    column_positions: Sequence[float],
    grading_scale: Sequence[str],
    status_options: Sequence[str],
    layout: ColumnLayout,
    mark_x_tolerance: float = MARK_X_TOLERANCE,
    detector: MarkDetector | None = None,
) -> ProcessedGrade:
    score = ""
    # first marked scale option wins
    for k, label in enumerate(grading_scale):
        if is_column_marked(row, column_positions, layout.score_column(k), mark_x_tolerance, detector):
            score = label
            break

    status = [
        label
        for j, label in enumerate(status_options)
        if is_column_marked(row, column_positions, layout.status_column(j), mark_x_tolerance, detector)
    ]

    return ProcessedGrade(
        student_id=student.student_id,
        student_name=student.full_name,
        score=score,
        status=status,
    )


def assemble_grades(
    roster: Sequence[RosterStudent],
    rows: Sequence[Row],
    column_positions: Sequence[float],
    grading_scale: Sequence[str],
    status_options: Sequence[str],
    leading_columns: int = LEADING_COLUMNS,
    mark_x_tolerance: float = MARK_X_TOLERANCE,
    detector: MarkDetector | None = None,
    row_matcher: RowMatcher | None = None,
) -> List[ProcessedGrade]:
    """
    Exactly one ProcessedGrade per roster student, in roster order.
    Students without a matched row get an empty score and status.
    """
    layout = ColumnLayout(
        scale_size=len(grading_scale),
        status_count=len(status_options),
        leading_columns=leading_columns,
    )
    matcher = row_matcher or PositionalRowMatcher()
    matched = matcher.match(rows, len(roster))

    grades: List[ProcessedGrade] = []
    for student, row in zip(roster, matched):
        if row is None:
            grades.append(empty_grade(student))
            continue
        grades.append(grade_row(
            student, row, column_positions, grading_scale, status_options,
            layout, mark_x_tolerance, detector,
        ))
    return grades


def merge_with_roster(
    grades: Sequence[Optional[ProcessedGrade]],
    roster: Sequence[RosterStudent],
) -> List[ProcessedGrade]:
    """
    Complete a positional (possibly short or sparse) grade list to one entry per
    roster student. Identity fields always come from the roster.
    """
    merged: List[ProcessedGrade] = []
    for i, student in enumerate(roster):
        grade = grades[i] if i < len(grades) else None
        if grade is None:
            merged.append(empty_grade(student))
            continue
        merged.append(grade.model_copy(update={
            "student_id": student.student_id,
            "student_name": student.full_name,
        }))
    return merged
