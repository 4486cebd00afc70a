from sqlalchemy import Column, String, Integer, DateTime, Text, Index, Enum, JSON
from datetime import datetime
import enum

from app.platform.db.base import BaseModel


class ScanStatus(enum.Enum):
    """Scan state machine: pending -> processing -> completed | failed"""
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = {ScanStatus.completed, ScanStatus.failed}


class Scan(BaseModel):
    """
    One audit run for one submitted URL.

    Result columns are nullable. NULL means "not determined"
    (the step degraded or has not run yet), never zero. Derived values such as
    the overall score are computed on read by the aggregator and never stored.
    """
    __tablename__ = "scans"

    url = Column(String(2048), nullable=False)
    cms_type = Column(String(64), nullable=True)

    # Run state
    status = Column(Enum(ScanStatus), default=ScanStatus.pending, nullable=False, index=True)
    current_step = Column(String(64), nullable=True)
    failed_step = Column(String(64), nullable=True)
    error_message = Column(Text, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)
    celery_task_id = Column(String(128), nullable=True, index=True)

    # Lighthouse (0-100)
    lighthouse_performance = Column(Integer, nullable=True)
    lighthouse_accessibility = Column(Integer, nullable=True)
    lighthouse_seo = Column(Integer, nullable=True)

    # Heuristic analyzers
    cta_score = Column(Integer, nullable=True)
    cta_details = Column(JSON, nullable=True)
    form_friction_score = Column(Integer, nullable=True)
    form_details = Column(JSON, nullable=True)
    trust_signals = Column(JSON, nullable=True)
    mobile_issues = Column(JSON, nullable=True)
    readability_score = Column(Integer, nullable=True)
    image_issues = Column(JSON, nullable=True)
    schema_detected = Column(JSON, nullable=True)

    # Relative to settings.STATIC_DIR
    screenshot_path = Column(String(512), nullable=True)

    queued_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index('idx_scans_created_at', 'created_at'),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
