"""HTTP surface tests with the worker pool and job store mocked out."""

import base64
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from autograde.core.errors import JobNotFoundError, JobStateError
from autograde.main import app
from autograde.models.grade_schemas import ProcessedGrade
from autograde.models.schemas import ProcessingJob
from autograde.routes import processing_routes
from autograde.services.job_queue import get_worker_pool

GRADES = [
    ProcessedGrade(student_id="001", student_name="Ann Lee", score="10"),
    ProcessedGrade(student_id="002", student_name="Bo Kim", status=["Absent"]),
]


@pytest.fixture
def pool():
    mock_pool = MagicMock()
    app.dependency_overrides[get_worker_pool] = lambda: mock_pool
    yield mock_pool
    app.dependency_overrides.clear()


@pytest.fixture
def store(monkeypatch):
    mock_store = MagicMock()
    mock_store.create_job.side_effect = lambda sheet, provider: ProcessingJob(
        job_id="job-1", grade_sheet_id=sheet, ocr_provider=provider
    )
    monkeypatch.setattr(processing_routes, "job_store", mock_store)
    return mock_store


@pytest.fixture
def client():
    return TestClient(app)


def _body(**overrides):
    body = {
        "imageBase64": base64.b64encode(b"fake-png").decode(),
        "gradeSheetId": "sheet-1",
        "periodId": "p1",
        "assignmentId": "a1",
    }
    body.update(overrides)
    return body


def test_root(client):
    assert client.get("/").status_code == 200


def test_process_queues_job(client, pool, store):
    resp = client.post("/processing/process", json=_body(ocrProvider="claude"))

    assert resp.status_code == 200
    assert resp.json()["job"]["job_id"] == "job-1"
    assert resp.json()["job"]["status"] == "pending"
    task = pool.submit.call_args.args[0]
    assert task.image_bytes == b"fake-png"
    assert task.ocr_provider == "claude"
    assert task.period_id == "p1"


def test_process_rejects_bad_base64(client, pool, store):
    resp = client.post("/processing/process", json=_body(imageBase64="%%%not-base64%%%"))
    assert resp.status_code == 400
    pool.submit.assert_not_called()


def test_process_rejects_unknown_provider(client, pool, store):
    resp = client.post("/processing/process", json=_body(ocrProvider="tesseract"))
    assert resp.status_code == 422


def test_upload_queues_job(client, pool, store):
    resp = client.post(
        "/processing/upload",
        files={"file": ("sheet.png", b"fake-png", "image/png")},
        data={"gradeSheetId": "sheet-1", "periodId": "p1", "assignmentId": "a1"},
    )
    assert resp.status_code == 200
    assert pool.submit.call_args.args[0].image_bytes == b"fake-png"


def test_upload_rejects_non_images(client, pool, store):
    resp = client.post(
        "/processing/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"gradeSheetId": "sheet-1", "periodId": "p1", "assignmentId": "a1"},
    )
    assert resp.status_code == 400


def test_get_missing_job(client, store):
    store.get_job.side_effect = JobNotFoundError("Job 'nope' not found")
    assert client.get("/processing/job/nope").status_code == 404


def test_list_jobs(client, store):
    store.list_jobs.return_value = [ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1")]
    resp = client.get("/processing/jobs?limit=5")
    assert resp.status_code == 200
    assert [j["job_id"] for j in resp.json()["jobs"]] == ["job-1"]
    store.list_jobs.assert_called_once_with(limit=5)


def test_correct_completed_job(client, store):
    store.get_job.return_value = ProcessingJob(
        job_id="job-1", grade_sheet_id="sheet-1", status="completed", result=GRADES
    )
    store.replace_result.side_effect = lambda job_id, grades: ProcessingJob(
        job_id=job_id, grade_sheet_id="sheet-1", status="completed", result=grades
    )

    resp = client.post(
        "/processing/job/job-1/correct",
        json={"corrections": [{"student_id": "002", "score": "8.5", "status": []}], "editedBy": "t@school.org"},
    )

    assert resp.status_code == 200
    result = resp.json()["job"]["result"]
    assert result[0]["manually_edited"] is False
    assert result[1]["score"] == "8.5"
    assert result[1]["status"] == []
    assert result[1]["edited_by"] == "t@school.org"
    sheet_id, status, grades = store.update_grade_sheet.call_args.args
    assert (sheet_id, status) == ("sheet-1", "completed")
    assert grades[1].manually_edited is True


def test_correct_unknown_student(client, store):
    store.get_job.return_value = ProcessingJob(
        job_id="job-1", grade_sheet_id="sheet-1", status="completed", result=GRADES
    )
    resp = client.post(
        "/processing/job/job-1/correct",
        json={"corrections": [{"student_id": "999", "score": "10"}], "editedBy": "t"},
    )
    assert resp.status_code == 400
    store.replace_result.assert_not_called()


def test_correct_requires_completed_job(client, store):
    store.get_job.return_value = ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1", status="processing")
    resp = client.post("/processing/job/job-1/correct", json={"corrections": [], "editedBy": "t"})
    assert resp.status_code == 409


def test_retry_conflict(client, pool, store):
    pool.retry.side_effect = JobStateError("Only failed jobs can be retried (job is completed)")
    assert client.post("/processing/job/job-1/retry").status_code == 409


def test_retry_requeues(client, pool, store):
    store.get_job.return_value = ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1")
    resp = client.post("/processing/job/job-1/retry")
    assert resp.status_code == 200
    assert resp.json()["detail"] == "requeued"
    pool.retry.assert_called_once_with("job-1")


def test_cancel_running_job_conflicts(client, pool, store):
    store.get_job.return_value = ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1", status="processing")
    pool.cancel.return_value = False
    assert client.delete("/processing/job/job-1").status_code == 409


def test_cancel_queued_job(client, pool, store):
    store.get_job.side_effect = [
        ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1"),
        ProcessingJob(job_id="job-1", grade_sheet_id="sheet-1", status="cancelled"),
    ]
    pool.cancel.return_value = True
    resp = client.delete("/processing/job/job-1")
    assert resp.status_code == 200
    assert resp.json()["job"]["status"] == "cancelled"
