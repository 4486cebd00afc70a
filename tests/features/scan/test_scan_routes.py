import os
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from app.features.scan.models.scan import Scan, ScanStatus
from app.features.scan.schemas.scan import ScanResponse, ScanStatusResponse
from app.features.scan.services.external.screenshot import screenshot_file_path
from app.platform.db.session import get_sync_db

DELAY = "app.features.scan.workers.tasks.analyze_website.delay"


def _insert(**fields) -> str:
    db = get_sync_db()
    try:
        scan = Scan(url=fields.pop("url", "https://example.com"), **fields)
        db.add(scan)
        db.commit()
        return scan.id
    finally:
        db.close()


def _load(scan_id: str) -> Scan:
    db = get_sync_db()
    try:
        return db.query(Scan).filter(Scan.id == scan_id).first()
    finally:
        db.close()


class TestSubmitScan:
    def test_submit_queues_analysis(self, client):
        with patch(DELAY, return_value=MagicMock(id="celery-123")) as delay:
            response = client.post("/api/v1/scans", json={"url": "https://example.com"})

        assert response.status_code == 202
        payload = response.json()
        assert payload["status"] == "success"
        data = payload["data"]
        assert data["url"] == "https://example.com"
        assert data["status"] == "pending"
        assert data["failed_step"] is None
        assert data["overall_score"] is None

        delay.assert_called_once_with(data["id"])
        assert _load(data["id"]).celery_task_id == "celery-123"

    def test_url_is_trimmed(self, client):
        with patch(DELAY, return_value=MagicMock(id="celery-1")):
            response = client.post("/api/v1/scans", json={"url": "  https://example.com/page  "})

        assert response.json()["data"]["url"] == "https://example.com/page"

    def test_relative_url_is_rejected(self, client):
        with patch(DELAY) as delay:
            response = client.post("/api/v1/scans", json={"url": "example.com"})

        assert response.status_code == 422
        assert response.json()["message"] == "Validation failed"
        delay.assert_not_called()

    def test_overlong_url_is_rejected(self, client):
        url = "https://example.com/" + "a" * 2048

        with patch(DELAY) as delay:
            response = client.post("/api/v1/scans", json={"url": url})

        assert response.status_code == 422
        delay.assert_not_called()

    def test_broker_failure_marks_scan_failed(self, client):
        with patch(DELAY, side_effect=ConnectionError("broker down")):
            response = client.post("/api/v1/scans", json={"url": "https://example.com"})

        assert response.status_code == 503
        db = get_sync_db()
        try:
            scan = db.query(Scan).one()
        finally:
            db.close()
        assert scan.status == ScanStatus.failed
        assert scan.failed_step == "enqueue"


class TestGetScan:
    def test_completed_scan_with_derived_fields(self, client):
        scan_id = _insert(
            status=ScanStatus.completed,
            cta_score=80,
            readability_score=60,
            cta_details=[{"text": "Buy", "element": "button", "issues": []}],
            screenshot_path="screenshots/x.png",
        )

        response = client.get(f"/api/v1/scans/{scan_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["overall_score"] == 70
        assert data["cta_count"] == 1
        assert data["screenshot_url"] == "/static/screenshots/x.png"

    def test_report_matches_response_model(self, client):
        scan_id = _insert(status=ScanStatus.pending)

        report = client.get(f"/api/v1/scans/{scan_id}").json()["data"]
        progress = client.get(f"/api/v1/scans/{scan_id}/status").json()["data"]

        assert set(report) == set(ScanResponse.model_fields)
        assert set(progress) == set(ScanStatusResponse.model_fields)
        assert report["cta_count"] == 0

    def test_missing_scan_is_404(self, client):
        response = client.get("/api/v1/scans/unknown-id")

        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_stale_processing_scan_is_failed_on_read(self, client):
        long_ago = datetime.utcnow() - timedelta(hours=2)
        scan_id = _insert(status=ScanStatus.processing, queued_at=long_ago, started_at=long_ago)

        response = client.get(f"/api/v1/scans/{scan_id}/status")

        data = response.json()["data"]
        assert data["status"] == "failed"
        assert data["failed_step"] == "timeout"
        assert _load(scan_id).status == ScanStatus.failed

    def test_terminal_scan_read_never_mutates(self, client):
        long_ago = datetime.utcnow() - timedelta(hours=2)
        scan_id = _insert(status=ScanStatus.completed, queued_at=long_ago, started_at=long_ago, cta_score=90)
        before = _load(scan_id)

        client.get(f"/api/v1/scans/{scan_id}")
        client.get(f"/api/v1/scans/{scan_id}/status")

        after = _load(scan_id)
        assert after.status == ScanStatus.completed
        assert after.failed_step is None
        assert after.updated_at == before.updated_at

    def test_status_payload(self, client):
        scan_id = _insert(status=ScanStatus.processing, started_at=datetime.utcnow(), current_step="analyze_readability")

        data = client.get(f"/api/v1/scans/{scan_id}/status").json()["data"]

        assert data == {
            "id": scan_id,
            "status": "processing",
            "current_step": "analyze_readability",
            "failed_step": None,
            "attempts": 0,
        }


class TestDeleteScan:
    def test_delete_removes_row_and_screenshot(self, client):
        relative_path = "screenshots/delete-me.png"
        target = screenshot_file_path(relative_path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(b"png")
        scan_id = _insert(status=ScanStatus.completed, screenshot_path=relative_path)

        response = client.delete(f"/api/v1/scans/{scan_id}")

        assert response.status_code == 204
        assert _load(scan_id) is None
        assert not os.path.exists(target)

    def test_delete_missing_scan_is_404(self, client):
        assert client.delete("/api/v1/scans/unknown-id").status_code == 404
