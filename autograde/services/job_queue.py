# autograde/services/job_queue.py
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional

from autograde.core.config import CONFIG
from autograde.core.errors import GradeProcessingError, InvalidImageError, JobStateError
from autograde.core.logger import get_logger
from autograde.models.grade_schemas import ProcessedGrade
from autograde.ocr.pipeline import PipelineTuning, debug_dir_for_sheet
from autograde.services import job_store
from autograde.services.grade_processor import process_grade_sheet
from autograde.services.roster import load_grading_config, load_roster

logger = get_logger("job_queue")


@dataclass(frozen=True)
class SheetTask:
    job_id: str
    grade_sheet_id: str
    period_id: str
    assignment_id: str
    image_bytes: bytes
    ocr_provider: str = "vision"
    debug: bool = False


def run_sheet_task(task: SheetTask) -> List[ProcessedGrade]:
    roster = load_roster(task.period_id)
    grading = load_grading_config(task.assignment_id)
    debug_dir = debug_dir_for_sheet(task.grade_sheet_id) if task.debug else None
    return process_grade_sheet(
        task.image_bytes,
        roster,
        grading,
        provider=task.ocr_provider,
        tuning=PipelineTuning.from_settings(CONFIG),
        debug_dir=debug_dir,
    )


def _is_retryable(exc: BaseException) -> bool:
    # a broken image fails the same way every time
    if isinstance(exc, InvalidImageError):
        return False
    if isinstance(exc, GradeProcessingError) and isinstance(exc.__cause__, InvalidImageError):
        return False
    return True


class GradeSheetWorkerPool:
    """
    Fixed-size pool processing one grade sheet per task.

    Each task retries as a whole (provider call + pipeline) with exponential
    backoff. Sheets share no state; only the job records are written.
    Queued tasks can be cancelled; running ones finish their current attempt.
    Images of failed jobs stay in memory for a manual retry, oldest dropped
    first once more than max_retained are held.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        runner: Callable[[SheetTask], List[ProcessedGrade]] = run_sheet_task,
        sleep: Callable[[float], None] = time.sleep,
        max_retained: int | None = None,
    ):
        self.max_workers = max_workers or CONFIG.WORKER_CONCURRENCY
        self.max_attempts = max_attempts or CONFIG.MAX_JOB_ATTEMPTS
        self.base_delay = CONFIG.JOB_RETRY_BASE_DELAY if base_delay is None else base_delay
        self.max_retained = CONFIG.MAX_RETAINED_IMAGES if max_retained is None else max_retained
        self.runner = runner
        self.sleep = sleep

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="gradesheet"
        )
        # reentrant: Future callbacks may fire in the thread holding it
        self._lock = threading.RLock()
        self._futures: Dict[str, Future] = {}
        self._tasks: "OrderedDict[str, SheetTask]" = OrderedDict()

    def submit(self, task: SheetTask) -> Future:
        with self._lock:
            running = self._futures.get(task.job_id)
            if running is not None and not running.done():
                raise JobStateError(f"Job '{task.job_id}' is already queued")
            self._retain(task)
            future = self._executor.submit(self._run, task)
            self._futures[task.job_id] = future
            future.add_done_callback(partial(self._forget_future, task.job_id))
        logger.info("Queued job %s for grade sheet %s", task.job_id, task.grade_sheet_id)
        return future

    def retry(self, job_id: str) -> Future:
        job = job_store.get_job(job_id)
        if job.status != "failed":
            raise JobStateError(f"Only failed jobs can be retried (job is {job.status})")
        with self._lock:
            task = self._tasks.get(job_id)
        if task is None:
            raise JobStateError(f"Image for job '{job_id}' is no longer available")
        job_store.mark_pending(job_id)
        return self.submit(task)

    def cancel(self, job_id: str) -> bool:
        with self._lock:
            future = self._futures.get(job_id)
            if future is None or not future.cancel():
                return False
            self._tasks.pop(job_id, None)
        job_store.cancel_job(job_id)
        logger.info("Cancelled queued job %s", job_id)
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def pending_jobs(self) -> List[str]:
        with self._lock:
            return [job_id for job_id, f in self._futures.items() if not f.done()]

    def retained_jobs(self) -> List[str]:
        with self._lock:
            return list(self._tasks)

    def _retain(self, task: SheetTask) -> None:
        self._tasks[task.job_id] = task
        self._tasks.move_to_end(task.job_id)
        while len(self._tasks) > max(self.max_retained, 0):
            dropped, _ = self._tasks.popitem(last=False)
            logger.debug("Dropped retained image of job %s", dropped)

    def _forget_future(self, job_id: str, future: Future) -> None:
        with self._lock:
            if self._futures.get(job_id) is future:
                del self._futures[job_id]

    def _run(self, task: SheetTask) -> Optional[List[ProcessedGrade]]:
        try:
            return self._attempt(task)
        except Exception as e:
            # job store unreachable; the runner's own errors are handled in _attempt
            logger.exception("Job %s stopped on a job store error", task.job_id)
            self._record_failure(task, f"Job store error: {e}")
            return None

    def _attempt(self, task: SheetTask) -> Optional[List[ProcessedGrade]]:
        for attempt in range(1, self.max_attempts + 1):
            job_store.mark_processing(task.job_id)
            job_store.update_grade_sheet(task.grade_sheet_id, "processing")
            try:
                grades = self.runner(task)
            except Exception as e:
                error = str(e) or e.__class__.__name__
                last = attempt >= self.max_attempts or not _is_retryable(e)
                logger.error(
                    "Job %s attempt %d/%d failed: %s", task.job_id, attempt, self.max_attempts, error
                )
                if last:
                    self._record_failure(task, error)
                    return None
                job_store.mark_pending(task.job_id, error)
                self.sleep(self.base_delay * (2 ** (attempt - 1)))
                continue

            job_store.complete_job(task.job_id, grades)
            job_store.update_grade_sheet(task.grade_sheet_id, "completed", grades)
            with self._lock:
                self._tasks.pop(task.job_id, None)
            logger.info("Completed job %s (%d grades)", task.job_id, len(grades))
            return grades
        return None

    def _record_failure(self, task: SheetTask, error: str) -> None:
        try:
            job_store.fail_job(task.job_id, error)
            job_store.update_grade_sheet(task.grade_sheet_id, "error")
        except Exception:
            logger.exception("Could not record failure of job %s: %s", task.job_id, error)


_POOL: GradeSheetWorkerPool | None = None
_POOL_LOCK = threading.Lock()


def get_worker_pool() -> GradeSheetWorkerPool:
    global _POOL
    with _POOL_LOCK:
        if _POOL is None:
            _POOL = GradeSheetWorkerPool()
        return _POOL
