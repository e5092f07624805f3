# autograde/services/grade_processor.py
from typing import List, Optional, Sequence

from autograde.core.errors import AutogradeError, GradeProcessingError
from autograde.core.logger import get_logger
from autograde.models.grade_schemas import GradingConfig, ProcessedGrade, RosterStudent
from autograde.ocr.pipeline import (
    PipelineTuning,
    grades_from_free_text,
    grades_from_text_objects,
)
from autograde.services.claude_vision import describe_grade_sheet
from autograde.services.google_vision import detect_text_objects
from autograde.services.preprocessing import preprocess_page

logger = get_logger("grade_processor")


def process_grade_sheet(
    image_bytes: bytes,
    roster: Sequence[RosterStudent],
    grading: GradingConfig,
    provider: str = "vision",
    tuning: Optional[PipelineTuning] = None,
    debug_dir: Optional[str] = None,
) -> List[ProcessedGrade]:
    """
    One provider call, then the pure pipeline.
    Returns exactly len(roster) grades; provider failures raise GradeProcessingError.
    """
    try:
        png = preprocess_page(image_bytes)
        if provider == "claude":
            text = describe_grade_sheet(png, grading.grading_scale)
            grades = grades_from_free_text(text, roster, debug_dir=debug_dir)
        elif provider == "vision":
            objects = detect_text_objects(png)
            grades = grades_from_text_objects(objects, roster, grading, tuning, debug_dir=debug_dir)
        else:
            raise GradeProcessingError(f"Unknown OCR provider '{provider}'")
    except GradeProcessingError:
        raise
    except AutogradeError as e:
        logger.error("Grade processing failed (%s): %s", provider, e)
        raise GradeProcessingError(f"Failed to process grade sheet: {e}") from e

    marked = sum(1 for g in grades if g.score or g.status)
    logger.info("Processed sheet with %s: %d/%d students with marks", provider, marked, len(grades))
    return grades
