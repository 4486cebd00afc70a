"""
Scan Schemas

Request and response models for the scan API endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

from app.platform.utils.url_validator import validate_url


class ScanCreateRequest(BaseModel):
    """Request to audit a single page."""
    url: str

    @field_validator("url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        is_valid, url, error = validate_url(v)
        if not is_valid:
            raise ValueError(error)
        return url

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com"
            }
        }


class ScanStatusResponse(BaseModel):
    """Lightweight polling payload."""
    id: str
    status: str
    current_step: Optional[str] = None
    failed_step: Optional[str] = None
    attempts: int = 0


class ScanResponse(ScanStatusResponse):
    """Full audit record plus values derived on read."""
    url: str
    cms_type: Optional[str] = None
    error_message: Optional[str] = None

    lighthouse_performance: Optional[int] = None
    lighthouse_accessibility: Optional[int] = None
    lighthouse_seo: Optional[int] = None
    lighthouse_average: Optional[int] = None

    cta_score: Optional[int] = None
    cta_details: Optional[List[Dict[str, Any]]] = None
    cta_count: int = 0
    form_friction_score: Optional[int] = None
    form_details: Optional[List[Dict[str, Any]]] = None
    form_count: int = 0
    trust_signals: Optional[List[Dict[str, Any]]] = None
    trust_signal_count: int = 0
    mobile_issues: Optional[List[Dict[str, Any]]] = None
    mobile_issue_count: int = 0
    readability_score: Optional[int] = None
    image_issues: Optional[List[Dict[str, Any]]] = None
    image_issue_count: int = 0
    schema_detected: Optional[List[Dict[str, Any]]] = None

    screenshot_url: Optional[str] = None
    overall_score: Optional[int] = None

    queued_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
