"""Scan worker tasks; importing this package registers them with Celery."""

from app.features.scan.workers import periodic_tasks  # noqa: F401
from app.features.scan.workers import tasks  # noqa: F401
