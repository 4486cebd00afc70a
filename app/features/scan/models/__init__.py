"""
Scan models package.
"""
from app.features.scan.models.scan import Scan, ScanStatus

__all__ = ["Scan", "ScanStatus"]
