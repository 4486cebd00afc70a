"""
Celery periodic tasks.

Runs on a schedule via Celery Beat.
"""
import logging

from celery import shared_task

from app.features.scan.services.orchestration.stale_scans import mark_stale_scans_failed
from app.platform.db.session import get_sync_db

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="app.features.scan.workers.periodic_tasks.cleanup_stale_scans")
def cleanup_stale_scans(self) -> int:
    """
    Fail scans stuck in pending or processing, e.g. after a worker was killed.

    Runs every STALE_SWEEP_INTERVAL_SECONDS via Celery Beat.
    """
    db = get_sync_db()
    try:
        count = mark_stale_scans_failed(db)
        if count:
            logger.warning(f"Marked {count} stale scan(s) as failed")
        else:
            logger.info("No stale scans found")
        return count
    except Exception as e:
        db.rollback()
        logger.error(f"Stale scan sweep failed: {e}", exc_info=True)
        raise
    finally:
        db.close()
