import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.scan.models.scan import Scan, ScanStatus
from app.features.scan.services.external.screenshot import remove_screenshot
from app.features.scan.services.orchestration.stale_scans import heal_if_stale

logger = logging.getLogger(__name__)

ENQUEUE_STEP = "enqueue"


async def create_scan(db: AsyncSession, url: str) -> Scan:
    """
    Insert a pending scan and queue its analysis run.

    If the broker rejects the task the row is marked failed before the error
    is re-raised, so it never sits in pending forever.
    """
    from app.features.scan.workers.tasks import analyze_website

    scan = Scan(url=url, status=ScanStatus.pending)
    db.add(scan)
    await db.commit()
    await db.refresh(scan)

    try:
        task_result = analyze_website.delay(scan.id)
    except Exception as e:
        logger.error(f"[{scan.id}] Could not queue analysis: {e}")
        scan.status = ScanStatus.failed
        scan.failed_step = ENQUEUE_STEP
        scan.error_message = f"Could not queue analysis: {e}"
        await db.commit()
        raise

    scan.celery_task_id = task_result.id
    await db.commit()
    await db.refresh(scan)

    logger.info(f"[{scan.id}] Queued analysis for {url}")
    return scan


async def get_scan(db: AsyncSession, scan_id: str) -> Optional[Scan]:
    result = await db.execute(select(Scan).where(Scan.id == scan_id))
    return result.scalar_one_or_none()


async def get_scan_for_read(db: AsyncSession, scan_id: str) -> Optional[Scan]:
    """Fetch a scan for display, failing it first if its run went stale."""
    scan = await get_scan(db, scan_id)
    if scan is None:
        return None
    return await heal_if_stale(db, scan)


async def delete_scan(db: AsyncSession, scan_id: str) -> bool:
    """Delete the row and its screenshot file. False when the scan does not exist."""
    scan = await get_scan(db, scan_id)
    if scan is None:
        logger.warning(f"Delete requested for non-existent scan {scan_id}")
        return False

    screenshot_path = scan.screenshot_path
    await db.delete(scan)
    await db.commit()

    if remove_screenshot(screenshot_path):
        logger.info(f"[{scan_id}] Removed screenshot {screenshot_path}")

    logger.info(f"[{scan_id}] Scan deleted")
    return True
