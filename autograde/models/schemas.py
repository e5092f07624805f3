# autograde/models/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from autograde.models.grade_schemas import GradeCorrection, ProcessedGrade

OCRProvider = Literal["vision", "claude"]
JobStatus = Literal["pending", "processing", "completed", "failed", "cancelled"]


class ProcessRequest(BaseModel):
    imageBase64: str
    gradeSheetId: str
    periodId: str
    assignmentId: str
    ocrProvider: OCRProvider = "vision"
    debug: bool = False


class CorrectionRequest(BaseModel):
    corrections: List[GradeCorrection]
    editedBy: str


class ProcessingJob(BaseModel):
    job_id: str
    grade_sheet_id: str
    status: JobStatus = "pending"
    ocr_provider: OCRProvider = "vision"
    attempts: int = 0
    error: Optional[str] = None
    result: Optional[List[ProcessedGrade]] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class JobResponse(BaseModel):
    job: ProcessingJob
    detail: str = ""


class SheetDebugInfo(BaseModel):
    """Loose dump of intermediate pipeline state, written only on request."""
    text_objects: List[Dict[str, Any]]
    rows: List[Dict[str, Any]]
    column_positions: List[int]
