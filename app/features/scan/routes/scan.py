from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.scan.schemas.scan import ScanCreateRequest, ScanResponse, ScanStatusResponse
from app.features.scan.services.scan.scan import create_scan, delete_scan, get_scan_for_read
from app.features.scan.services.utils.aggregator import format_scan, format_scan_status
from app.platform.db.session import get_db
from app.platform.logger import get_logger
from app.platform.response import api_response, empty_response

logger = get_logger(__name__)

router = APIRouter(prefix="/scans", tags=["scans"])


def _not_found(scan_id: str):
    return api_response(
        status_code=status.HTTP_404_NOT_FOUND,
        message=f"Scan {scan_id} not found",
        data={}
    )


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def submit_scan(
    data: ScanCreateRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Queue an audit of a single page.

    The analysis runs on a Celery worker; poll GET /scans/{scan_id}/status
    until the status is completed or failed.
    """
    try:
        scan = await create_scan(db, data.url)
    except Exception as e:
        logger.error(f"Error queueing scan for {data.url}: {e}")
        return api_response(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message="Scan could not be queued, please try again later",
            data={}
        )

    return api_response(
        data=ScanResponse(**format_scan(scan)).model_dump(),
        message="Scan queued successfully",
        status_code=status.HTTP_202_ACCEPTED
    )


@router.get("/{scan_id}")
async def get_scan_report(
    scan_id: str,
    db: AsyncSession = Depends(get_db)
):
    """Full audit record with overall score, counts and screenshot URL."""
    scan = await get_scan_for_read(db, scan_id)
    if scan is None:
        return _not_found(scan_id)

    report = ScanResponse(**format_scan(scan))
    return api_response(data=report.model_dump(), message="Scan retrieved successfully")


@router.get("/{scan_id}/status")
async def get_scan_status(
    scan_id: str,
    db: AsyncSession = Depends(get_db)
):
    scan = await get_scan_for_read(db, scan_id)
    if scan is None:
        return _not_found(scan_id)

    progress = ScanStatusResponse(**format_scan_status(scan))
    return api_response(data=progress.model_dump(), message="Scan status retrieved successfully")


@router.delete(
    "/{scan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a scan",
    description="""
    Delete a scan record and its stored screenshot.

    Returns:
    - 204: Scan deleted
    - 404: Scan not found
    """
)
async def remove_scan(
    scan_id: str,
    db: AsyncSession = Depends(get_db)
):
    deleted = await delete_scan(db, scan_id)
    if not deleted:
        return _not_found(scan_id)

    return empty_response()
