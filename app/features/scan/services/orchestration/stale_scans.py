"""
Recovery for runs whose worker died without recording a failure.

A run left in pending or processing past SCAN_STALE_AFTER_MINUTES is moved
to failed with failed_step="timeout". The beat task sweeps in bulk and the
read path heals single rows, both through the same rule.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.features.scan.models.scan import Scan, ScanStatus
from app.platform.config import settings

logger = logging.getLogger(__name__)

TIMEOUT_STEP = "timeout"
STALE_STATUSES = (ScanStatus.pending, ScanStatus.processing)


def stale_cutoff(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) - timedelta(minutes=settings.SCAN_STALE_AFTER_MINUTES)


def _reference_time(scan: Scan) -> Optional[datetime]:
    if scan.status == ScanStatus.processing:
        return scan.started_at or scan.queued_at
    return scan.queued_at


def is_stale(scan: Scan, now: Optional[datetime] = None) -> bool:
    if scan.status not in STALE_STATUSES:
        return False
    reference = _reference_time(scan)
    return reference is not None and reference < stale_cutoff(now)


def mark_timed_out(scan: Scan, now: Optional[datetime] = None) -> None:
    scan.status = ScanStatus.failed
    scan.failed_step = TIMEOUT_STEP
    scan.error_message = (
        f"Scan did not finish within {settings.SCAN_STALE_AFTER_MINUTES} minutes"
    )
    scan.completed_at = now or datetime.utcnow()


def mark_stale_scans_failed(db: Session, now: Optional[datetime] = None) -> int:
    """Fail every stale run in one transaction; returns how many were updated."""
    now = now or datetime.utcnow()
    cutoff = stale_cutoff(now)

    candidates = (
        db.query(Scan)
        .filter(
            or_(
                (Scan.status == ScanStatus.pending) & (Scan.queued_at < cutoff),
                (Scan.status == ScanStatus.processing) & (Scan.started_at < cutoff),
                (Scan.status == ScanStatus.processing) & Scan.started_at.is_(None) & (Scan.queued_at < cutoff),
            )
        )
        .all()
    )

    for scan in candidates:
        logger.warning(f"[{scan.id}] Marking stale {scan.status.value} scan as failed")
        mark_timed_out(scan, now)

    if candidates:
        db.commit()
    return len(candidates)


async def heal_if_stale(db: AsyncSession, scan: Scan, now: Optional[datetime] = None) -> Scan:
    """Read-path variant: terminal rows are returned untouched."""
    if not is_stale(scan, now):
        return scan

    logger.warning(f"[{scan.id}] Stale scan found on read, marking as failed")
    mark_timed_out(scan, now)
    await db.commit()
    await db.refresh(scan)
    return scan
