from app.features.scan.services.orchestration.stale_scans import mark_stale_scans_failed
from app.platform.db.session import get_sync_db


def cleanup_stale_scans():
    db = get_sync_db()
    try:
        count = mark_stale_scans_failed(db)
    finally:
        db.close()

    if count > 0:
        print(f"✅ Marked {count} stale scan(s) as failed")
    else:
        print("No stale scans found")


if __name__ == "__main__":
    cleanup_stale_scans()
