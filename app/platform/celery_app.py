from celery import Celery
from kombu import Queue

from app.platform.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Queue Structure:
    - scan.analysis: One task per page audit run (fetch -> analyzers -> lighthouse -> screenshot)
    - celery: Periodic housekeeping (stale scan sweep)

    A run is never split across tasks: every step works on the same parsed
    document, so the whole pipeline executes inside a single worker.
    """
    celery_app = Celery(
        "page_audit",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_track_started=settings.CELERY_TASK_TRACK_STARTED,

        # Hard kill shortly after the soft limit so the failure handler still runs
        task_soft_time_limit=settings.SCAN_TIME_LIMIT_SECONDS,
        task_time_limit=settings.SCAN_TIME_LIMIT_SECONDS + 30,

        result_expires=3600,  # Results expire after 1 hour

        task_routes={
            "app.features.scan.workers.tasks.analyze_website": {"queue": "scan.analysis"},
            "app.features.scan.workers.periodic_tasks.cleanup_stale_scans": {"queue": "celery"},
        },

        task_queues=(
            Queue("default"),
            Queue("celery"),  # For periodic tasks
            Queue("scan.analysis"),
        ),

        task_default_queue="default",

        worker_prefetch_multiplier=1,  # Fair distribution

        task_acks_late=True,  # Acknowledge after task completes
        task_reject_on_worker_lost=True,  # Requeue if worker dies

        beat_schedule={
            "cleanup-stale-scans": {
                "task": "app.features.scan.workers.periodic_tasks.cleanup_stale_scans",
                "schedule": settings.STALE_SWEEP_INTERVAL_SECONDS,
            },
        },
    )

    celery_app.autodiscover_tasks(["app.features.scan.workers"])

    return celery_app


# Global Celery app instance
celery_app = create_celery_app()
