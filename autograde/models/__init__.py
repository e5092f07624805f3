# autograde/models/__init__.py

from .grade_schemas import GradeCorrection, GradingConfig, ProcessedGrade, RosterStudent
from .ocr import BoundingBox, TextObject
from .schemas import CorrectionRequest, ProcessingJob, ProcessRequest

__all__ = [
    "BoundingBox",
    "TextObject",
    "RosterStudent",
    "GradingConfig",
    "ProcessedGrade",
    "GradeCorrection",
    "ProcessRequest",
    "CorrectionRequest",
    "ProcessingJob",
]
