import binascii

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from autograde.core.errors import JobNotFoundError, JobStateError, UnknownStudentError
from autograde.core.logger import get_logger
from autograde.models.schemas import CorrectionRequest, JobResponse, ProcessRequest
from autograde.services import job_store
from autograde.services.corrections import apply_corrections
from autograde.services.job_queue import GradeSheetWorkerPool, SheetTask, get_worker_pool
from autograde.utils.helpers import b64_to_bytes

logger = get_logger("routes.processing")

router = APIRouter(prefix="/processing", tags=["Grade Sheet Processing"])


def _enqueue(
    pool: GradeSheetWorkerPool,
    image_bytes: bytes,
    grade_sheet_id: str,
    period_id: str,
    assignment_id: str,
    ocr_provider: str,
    debug: bool = False,
) -> JobResponse:
    job = job_store.create_job(grade_sheet_id, ocr_provider)
    pool.submit(SheetTask(
        job_id=job.job_id,
        grade_sheet_id=grade_sheet_id,
        period_id=period_id,
        assignment_id=assignment_id,
        image_bytes=image_bytes,
        ocr_provider=ocr_provider,
        debug=debug,
    ))
    return JobResponse(job=job, detail="queued")


@router.post("/process", response_model=JobResponse)
def process_base64(req: ProcessRequest, pool: GradeSheetWorkerPool = Depends(get_worker_pool)):
    try:
        image_bytes = b64_to_bytes(req.imageBase64)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="imageBase64 is not valid base64")
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Empty image")

    return _enqueue(
        pool, image_bytes, req.gradeSheetId, req.periodId, req.assignmentId,
        req.ocrProvider, req.debug,
    )


@router.post("/upload", response_model=JobResponse)
async def upload_grade_sheet(
    file: UploadFile = File(...),
    gradeSheetId: str = Form(...),
    periodId: str = Form(...),
    assignmentId: str = Form(...),
    ocrProvider: str = Form("vision"),
    pool: GradeSheetWorkerPool = Depends(get_worker_pool),
):
    """Multipart upload of one scanned sheet (jpg/png)."""
    if ocrProvider not in ("vision", "claude"):
        raise HTTPException(status_code=400, detail="ocrProvider must be 'vision' or 'claude'")
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are allowed.")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty image")
    return _enqueue(pool, content, gradeSheetId, periodId, assignmentId, ocrProvider)


@router.get("/job/{job_id}", response_model=JobResponse)
def get_job_status(job_id: str):
    try:
        return JobResponse(job=job_store.get_job(job_id))
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/jobs")
def get_jobs(limit: int = 50):
    return {"jobs": [j.model_dump() for j in job_store.list_jobs(limit=limit)]}


@router.post("/job/{job_id}/retry", response_model=JobResponse)
def retry_job(job_id: str, pool: GradeSheetWorkerPool = Depends(get_worker_pool)):
    try:
        pool.retry(job_id)
        return JobResponse(job=job_store.get_job(job_id), detail="requeued")
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except JobStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/job/{job_id}/correct", response_model=JobResponse)
def correct_results(job_id: str, req: CorrectionRequest):
    try:
        job = job_store.get_job(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if job.status != "completed" or job.result is None:
        raise HTTPException(status_code=409, detail=f"Job is {job.status}; only completed jobs can be corrected")

    try:
        corrected = apply_corrections(job.result, req.corrections, editor=req.editedBy)
    except UnknownStudentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    updated = job_store.replace_result(job_id, corrected)
    job_store.update_grade_sheet(job.grade_sheet_id, "completed", corrected)
    logger.info("Applied %d corrections to job %s", len(req.corrections), job_id)
    return JobResponse(job=updated, detail="corrected")


@router.delete("/job/{job_id}", response_model=JobResponse)
def cancel_job(job_id: str, pool: GradeSheetWorkerPool = Depends(get_worker_pool)):
    try:
        job = job_store.get_job(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if not pool.cancel(job_id):
        raise HTTPException(status_code=409, detail=f"Job is {job.status} and can no longer be cancelled")
    return JobResponse(job=job_store.get_job(job_id), detail="cancelled")
