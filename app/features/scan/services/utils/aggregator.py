"""
Derived report values, recomputed from a Scan row on every read.

None components are ignored everywhere; an average over no inputs is None.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.features.scan.models.scan import Scan
from app.features.scan.services.analysis.base import round_half_up
from app.platform.config import settings


def _rounded_mean(scores: Iterable[Optional[int]]) -> Optional[int]:
    present = [score for score in scores if score is not None]
    if not present:
        return None
    return round_half_up(sum(present) / len(present))


def _count(items: Optional[List[Any]]) -> int:
    return len(items or [])


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def overall_score(scan: Scan) -> Optional[int]:
    return _rounded_mean([
        scan.lighthouse_performance,
        scan.lighthouse_accessibility,
        scan.lighthouse_seo,
        scan.cta_score,
        scan.form_friction_score,
        scan.readability_score,
    ])


def lighthouse_average(scan: Scan) -> Optional[int]:
    return _rounded_mean([
        scan.lighthouse_performance,
        scan.lighthouse_accessibility,
        scan.lighthouse_seo,
    ])


def screenshot_url(scan: Scan) -> Optional[str]:
    if not scan.screenshot_path:
        return None
    return f"{settings.STATIC_URL.rstrip('/')}/{scan.screenshot_path.lstrip('/')}"


def format_scan(scan: Scan) -> Dict[str, Any]:
    """Full record plus derived fields, in the shape the API returns."""
    return {
        "id": scan.id,
        "url": scan.url,
        "cms_type": scan.cms_type,
        "status": scan.status.value if scan.status else None,
        "current_step": scan.current_step,
        "failed_step": scan.failed_step,
        "error_message": scan.error_message,
        "attempts": scan.attempts or 0,
        "lighthouse_performance": scan.lighthouse_performance,
        "lighthouse_accessibility": scan.lighthouse_accessibility,
        "lighthouse_seo": scan.lighthouse_seo,
        "lighthouse_average": lighthouse_average(scan),
        "cta_score": scan.cta_score,
        "cta_details": scan.cta_details,
        "cta_count": _count(scan.cta_details),
        "form_friction_score": scan.form_friction_score,
        "form_details": scan.form_details,
        "form_count": _count(scan.form_details),
        "trust_signals": scan.trust_signals,
        "trust_signal_count": _count(scan.trust_signals),
        "mobile_issues": scan.mobile_issues,
        "mobile_issue_count": _count(scan.mobile_issues),
        "readability_score": scan.readability_score,
        "image_issues": scan.image_issues,
        "image_issue_count": _count(scan.image_issues),
        "schema_detected": scan.schema_detected,
        "screenshot_url": screenshot_url(scan),
        "overall_score": overall_score(scan),
        "queued_at": _iso(scan.queued_at),
        "started_at": _iso(scan.started_at),
        "completed_at": _iso(scan.completed_at),
        "created_at": _iso(scan.created_at),
        "updated_at": _iso(scan.updated_at),
    }


def format_scan_status(scan: Scan) -> Dict[str, Any]:
    return {
        "id": scan.id,
        "status": scan.status.value if scan.status else None,
        "current_step": scan.current_step,
        "failed_step": scan.failed_step,
        "attempts": scan.attempts or 0,
    }
