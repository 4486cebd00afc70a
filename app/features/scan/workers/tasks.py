import logging
from datetime import datetime
from typing import Any, Dict, Optional

from celery import Task

from app.features.scan.exceptions import PipelineStepError
from app.features.scan.models.scan import Scan, ScanStatus
from app.features.scan.services.orchestration.pipeline import AnalysisPipeline
from app.platform.celery_app import celery_app
from app.platform.config import settings
from app.platform.db.session import get_sync_db

logger = logging.getLogger(__name__)

INITIAL_STEP = "initializing"
SAVING_STEP = "saving_results"
UNKNOWN_STEP = "unknown"


def mark_scan_failed(scan_id: str, step: Optional[str] = None, error_message: Optional[str] = None) -> bool:
    """
    Record a terminal failure for a run.

    A completed scan, or one whose failure is already recorded, is left as
    is. The step falls back to whatever step the row last entered.
    Returns True when the row was updated.
    """
    db = get_sync_db()
    try:
        scan = db.query(Scan).filter(Scan.id == scan_id).first()
        if scan is None:
            logger.warning(f"[{scan_id}] Cannot mark missing scan as failed")
            return False

        if scan.status == ScanStatus.completed:
            return False
        if scan.status == ScanStatus.failed and scan.failed_step:
            return False

        scan.status = ScanStatus.failed
        scan.failed_step = step or scan.failed_step or scan.current_step or UNKNOWN_STEP
        if error_message:
            scan.error_message = error_message
        scan.completed_at = datetime.utcnow()
        db.commit()

        logger.error(f"[{scan_id}] Scan failed at step '{scan.failed_step}': {scan.error_message}")
        return True
    finally:
        db.close()


def _record_attempt_failure(db, scan: Scan, error: PipelineStepError, is_final_attempt: bool) -> None:
    db.rollback()
    scan.error_message = str(error.cause)
    if is_final_attempt:
        scan.status = ScanStatus.failed
        scan.failed_step = error.step
        scan.completed_at = datetime.utcnow()
        logger.error(f"[{scan.id}] Final attempt failed at step '{error.step}': {error.cause}")
    else:
        # Stays processing, the retry restarts the whole pipeline
        scan.current_step = error.step
        logger.warning(f"[{scan.id}] Attempt {scan.attempts} failed at step '{error.step}', will retry")
    db.commit()


def execute_analysis(
    scan_id: str,
    is_final_attempt: bool = True,
    pipeline: Optional[AnalysisPipeline] = None,
) -> Optional[str]:
    """
    Run one attempt of the audit for a stored scan.

    Moves the row to processing, persists the current step as the pipeline
    advances and writes every result field together with status=completed.

    Raises:
        PipelineStepError: the attempt failed; on the final attempt the row
            has already been marked failed
    """
    db = get_sync_db()
    try:
        scan = db.query(Scan).filter(Scan.id == scan_id).first()
        if scan is None:
            logger.warning(f"[{scan_id}] Scan not found, nothing to analyze")
            return None

        if scan.is_terminal:
            logger.info(f"[{scan_id}] Scan already {scan.status.value}, skipping")
            return scan.status.value

        scan.status = ScanStatus.processing
        scan.started_at = datetime.utcnow()
        scan.attempts = (scan.attempts or 0) + 1
        scan.current_step = INITIAL_STEP
        scan.failed_step = None
        scan.error_message = None
        db.commit()

        logger.info(f"[{scan_id}] Starting analysis of {scan.url} (attempt {scan.attempts})")

        def record_step(step: str) -> None:
            scan.current_step = step
            db.commit()
            logger.info(f"[{scan_id}] Step: {step}")

        pipeline = pipeline or AnalysisPipeline.with_default_tools()

        try:
            results = pipeline.run(scan.url, on_step=record_step)
            _save_results(db, scan, results, record_step)
        except PipelineStepError as e:
            _record_attempt_failure(db, scan, e, is_final_attempt)
            raise

        logger.info(f"[{scan_id}] Analysis completed")
        return scan.status.value
    finally:
        db.close()


def _save_results(db, scan: Scan, results: Dict[str, Any], record_step) -> None:
    try:
        record_step(SAVING_STEP)
        for field, value in results.items():
            setattr(scan, field, value)
        scan.status = ScanStatus.completed
        scan.current_step = None
        scan.failed_step = None
        scan.completed_at = datetime.utcnow()
        db.commit()
    except Exception as e:
        raise PipelineStepError(SAVING_STEP, e) from e


class AnalyzeWebsiteTask(Task):
    """Leaves the scan failed once Celery gives up on it."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        scan_id = args[0] if args else kwargs.get("scan_id")
        if not scan_id:
            return
        step = exc.step if isinstance(exc, PipelineStepError) else None
        mark_scan_failed(scan_id, step=step, error_message=str(exc))


@celery_app.task(
    bind=True,
    base=AnalyzeWebsiteTask,
    name="app.features.scan.workers.tasks.analyze_website",
    max_retries=settings.SCAN_MAX_ATTEMPTS - 1,
    default_retry_delay=settings.SCAN_RETRY_DELAY_SECONDS,
    soft_time_limit=settings.SCAN_TIME_LIMIT_SECONDS,
    time_limit=settings.SCAN_TIME_LIMIT_SECONDS + 30,
)
def analyze_website(self, scan_id: str) -> Optional[str]:
    """
    Audit one submitted page.

    Every attempt re-runs the whole pipeline from the fetch; there is no
    partial resume. The last attempt's failure is recorded on the row.
    """
    is_final_attempt = self.request.retries >= self.max_retries
    try:
        return execute_analysis(scan_id, is_final_attempt=is_final_attempt)
    except Exception as e:
        if is_final_attempt:
            raise
        logger.warning(f"[{scan_id}] Retrying analysis ({self.request.retries + 1}/{self.max_retries}): {e}")
        raise self.retry(exc=e)
