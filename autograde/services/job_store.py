# autograde/services/job_store.py
"""
Processing jobs and grade-sheet results in MongoDB.

The job document is the record readers poll. Completing a job sets status,
result and completed_at in one find_one_and_update, so a reader never sees
"completed" without its grades.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from pymongo import DESCENDING, ReturnDocument

from autograde.core.database import GRADE_SHEETS, PROCESSING_JOBS, get_collection
from autograde.core.errors import JobNotFoundError
from autograde.models.grade_schemas import ProcessedGrade
from autograde.models.schemas import ProcessingJob


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _doc_to_job(doc: Dict[str, Any]) -> ProcessingJob:
    data = {k: v for k, v in doc.items() if k != "_id"}
    return ProcessingJob(**data)


def _grades_to_docs(grades: Sequence[ProcessedGrade]) -> List[Dict[str, Any]]:
    return [g.model_dump() for g in grades]


def create_job(grade_sheet_id: str, ocr_provider: str = "vision") -> ProcessingJob:
    job = ProcessingJob(
        job_id=uuid.uuid4().hex,
        grade_sheet_id=grade_sheet_id,
        ocr_provider=ocr_provider,
        created_at=_now(),
    )
    get_collection(PROCESSING_JOBS).insert_one(job.model_dump())
    return job


def get_job(job_id: str) -> ProcessingJob:
    doc = get_collection(PROCESSING_JOBS).find_one({"job_id": job_id})
    if not doc:
        raise JobNotFoundError(f"Job '{job_id}' not found")
    return _doc_to_job(doc)


def list_jobs(limit: int = 50) -> List[ProcessingJob]:
    cursor = get_collection(PROCESSING_JOBS).find({}).sort("created_at", DESCENDING).limit(limit)
    return [_doc_to_job(doc) for doc in cursor]


def _update(job_id: str, update: Dict[str, Any]) -> ProcessingJob:
    doc = get_collection(PROCESSING_JOBS).find_one_and_update(
        {"job_id": job_id},
        update,
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise JobNotFoundError(f"Job '{job_id}' not found")
    return _doc_to_job(doc)


def mark_processing(job_id: str) -> ProcessingJob:
    return _update(job_id, {
        "$set": {"status": "processing", "started_at": _now(), "error": None},
        "$inc": {"attempts": 1},
    })


def mark_pending(job_id: str, error: str | None = None) -> ProcessingJob:
    return _update(job_id, {"$set": {"status": "pending", "error": error}})


def complete_job(job_id: str, grades: Sequence[ProcessedGrade]) -> ProcessingJob:
    return _update(job_id, {"$set": {
        "status": "completed",
        "result": _grades_to_docs(grades),
        "completed_at": _now(),
        "error": None,
    }})


def fail_job(job_id: str, error: str) -> ProcessingJob:
    return _update(job_id, {"$set": {
        "status": "failed",
        "error": error,
        "result": None,
        "completed_at": _now(),
    }})


def cancel_job(job_id: str) -> ProcessingJob:
    return _update(job_id, {"$set": {"status": "cancelled", "completed_at": _now()}})


def replace_result(job_id: str, grades: Sequence[ProcessedGrade]) -> ProcessingJob:
    """Store a corrected grade list in place of the previous one."""
    return _update(job_id, {"$set": {"result": _grades_to_docs(grades)}})


def update_grade_sheet(
    grade_sheet_id: str,
    status: str,
    grades: Sequence[ProcessedGrade] | None = None,
) -> None:
    fields: Dict[str, Any] = {"status": status, "updated_at": _now()}
    if grades is not None:
        fields["processed_data"] = _grades_to_docs(grades)
    get_collection(GRADE_SHEETS).update_one(
        {"grade_sheet_id": grade_sheet_id},
        {"$set": fields},
        upsert=True,
    )
