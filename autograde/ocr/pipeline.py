# autograde/ocr/pipeline.py
"""
Grade-sheet vision pipeline.

Two paths end in the same normalized output (one ProcessedGrade per roster
student, roster order):

  text objects -> rows -> column positions -> marks per cell -> grades
  free-text "Row,Score,Status" reply        -> grades

Everything here is pure and synchronous; provider calls and persistence
happen around it.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from autograde.core.config import DEBUG_ROOT, Settings
from autograde.core.logger import get_logger
from autograde.models.grade_schemas import GradingConfig, ProcessedGrade, RosterStudent
from autograde.models.ocr import TextObject
from autograde.models.schemas import SheetDebugInfo
from autograde.ocr.column_inference import infer_column_positions
from autograde.ocr.free_text_parser import parse_free_text_grades
from autograde.ocr.grade_assembler import (
    ColumnLayout,
    RowMatcher,
    assemble_grades,
    check_column_count,
    merge_with_roster,
    row_matcher_for,
)
from autograde.ocr.mark_detector import default_mark_detector
from autograde.ocr.row_clustering import Row, cluster_into_rows
from autograde.utils.helpers import ensure_dir, save_debug_json

logger = get_logger("pipeline")


@dataclass
class PipelineTuning:
    # Defaults are tied to the printed template at standard scan resolution.
    row_y_tolerance: float = 15.0
    column_x_tolerance: float = 20.0
    mark_x_tolerance: float = 25.0
    min_column_observations: int = 2
    column_sample_rows: int = 5
    low_confidence_threshold: float = 0.5
    low_confidence_max_text_len: int = 2
    leading_columns: int = 2
    row_matching: str = "positional"
    row_skip: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineTuning":
        return cls(
            row_y_tolerance=settings.ROW_Y_TOLERANCE,
            column_x_tolerance=settings.COLUMN_X_TOLERANCE,
            mark_x_tolerance=settings.MARK_X_TOLERANCE,
            min_column_observations=settings.MIN_COLUMN_OBSERVATIONS,
            column_sample_rows=settings.COLUMN_SAMPLE_ROWS,
            low_confidence_threshold=settings.LOW_CONFIDENCE_THRESHOLD,
            low_confidence_max_text_len=settings.LOW_CONFIDENCE_MAX_TEXT_LEN,
            leading_columns=settings.LEADING_COLUMNS,
            row_matching=settings.ROW_MATCHING,
            row_skip=settings.ROW_SKIP,
        )


@dataclass
class SheetAnalysis:
    text_objects: List[TextObject]
    rows: List[Row]
    column_positions: List[int] = field(default_factory=list)

    def debug_info(self) -> SheetDebugInfo:
        return SheetDebugInfo(
            text_objects=[o.to_dict() for o in self.text_objects],
            rows=[r.to_dict() for r in self.rows],
            column_positions=list(self.column_positions),
        )


def analyze_text_objects(
    text_objects: Sequence[TextObject],
    tuning: PipelineTuning | None = None,
) -> SheetAnalysis:
    tuning = tuning or PipelineTuning()
    rows = cluster_into_rows(text_objects, y_tolerance=tuning.row_y_tolerance)
    columns = infer_column_positions(
        rows,
        sample_rows=tuning.column_sample_rows,
        x_tolerance=tuning.column_x_tolerance,
        min_observations=tuning.min_column_observations,
    )
    logger.info(
        "Clustered %d text objects into %d rows, %d columns",
        len(text_objects), len(rows), len(columns),
    )
    return SheetAnalysis(text_objects=list(text_objects), rows=rows, column_positions=columns)


def grades_from_analysis(
    analysis: SheetAnalysis,
    roster: Sequence[RosterStudent],
    grading: GradingConfig,
    tuning: PipelineTuning | None = None,
    row_matcher: RowMatcher | None = None,
) -> List[ProcessedGrade]:
    tuning = tuning or PipelineTuning()
    status_options = grading.active_status_options

    layout = ColumnLayout(
        scale_size=len(grading.grading_scale),
        status_count=len(status_options),
        leading_columns=tuning.leading_columns,
    )
    check_column_count(layout, len(analysis.column_positions))

    if len(analysis.rows) != len(roster):
        logger.info("Detected %d rows for %d students", len(analysis.rows), len(roster))

    grades = assemble_grades(
        roster,
        analysis.rows,
        analysis.column_positions,
        grading.grading_scale,
        status_options,
        leading_columns=tuning.leading_columns,
        mark_x_tolerance=tuning.mark_x_tolerance,
        detector=default_mark_detector(
            tuning.low_confidence_threshold, tuning.low_confidence_max_text_len
        ),
        row_matcher=row_matcher or row_matcher_for(tuning.row_matching, skip_rows=tuning.row_skip),
    )
    return merge_with_roster(grades, roster)


def grades_from_text_objects(
    text_objects: Sequence[TextObject],
    roster: Sequence[RosterStudent],
    grading: GradingConfig,
    tuning: PipelineTuning | None = None,
    debug_dir: Optional[str] = None,
) -> List[ProcessedGrade]:
    analysis = analyze_text_objects(text_objects, tuning)
    if debug_dir:
        save_debug_json(analysis.debug_info().model_dump(), f"{debug_dir}/01_analysis.json")
    return grades_from_analysis(analysis, roster, grading, tuning)


def grades_from_free_text(
    text: str,
    roster: Sequence[RosterStudent],
    debug_dir: Optional[str] = None,
) -> List[ProcessedGrade]:
    if debug_dir:
        with open(f"{debug_dir}/00_free_text.txt", "w", encoding="utf-8") as f:
            f.write(text or "")
    return parse_free_text_grades(text, roster)


def debug_dir_for_sheet(grade_sheet_id: str) -> str:
    stamp = dt.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return ensure_dir(f"{DEBUG_ROOT}/{stamp}_{grade_sheet_id}")
