import json
import logging
import os
import subprocess
import tempfile
import uuid
from typing import Any, Dict, Optional

from app.features.scan.exceptions import AnalyzerDegradation
from app.features.scan.services.analysis.base import NEVER_DEGRADE, round_half_up
from app.features.scan.services.external.base import AuditReport, AuditRunner
from app.platform.config import settings

logger = logging.getLogger(__name__)

CATEGORIES = ('performance', 'accessibility', 'seo')

CHROME_FLAGS = '--headless --no-sandbox --disable-gpu --disable-dev-shm-usage'


def extract_lighthouse_score(report: Dict[str, Any], category: str) -> Optional[int]:
    """Category score as a 0-100 integer; Lighthouse reports it as a 0-1 fraction."""
    score = ((report.get("categories") or {}).get(category) or {}).get("score")
    if score is None:
        return None
    return round_half_up(float(score) * 100)


class LighthouseRunner:
    """Runs the Lighthouse CLI in a subprocess and reads back its JSON report."""

    def __init__(self, binary: str = None, timeout: int = None):
        self.binary = binary or settings.LIGHTHOUSE_BIN
        self.timeout = timeout or settings.LIGHTHOUSE_TIMEOUT_SECONDS

    def build_command(self, url: str, output_path: str) -> list:
        return [
            self.binary,
            url,
            '--output=json',
            f'--output-path={output_path}',
            f'--chrome-flags={CHROME_FLAGS}',
            f'--only-categories={",".join(CATEGORIES)}',
            '--quiet',
        ]

    def run_audit(self, url: str) -> AuditReport:
        output_path = os.path.join(tempfile.gettempdir(), f"lighthouse-{uuid.uuid4()}.json")

        try:
            try:
                result = subprocess.run(
                    self.build_command(url, output_path),
                    capture_output=True, text=True, timeout=self.timeout
                )
            except subprocess.TimeoutExpired as e:
                raise AnalyzerDegradation(f"Lighthouse timed out after {self.timeout}s") from e
            except OSError as e:
                raise AnalyzerDegradation(f"Lighthouse could not be started: {e}") from e

            if not os.path.exists(output_path):
                if result.returncode != 0:
                    raise AnalyzerDegradation(f"Lighthouse CLI failed: {result.stderr.strip()}")
                raise AnalyzerDegradation("Lighthouse output file not created")

            try:
                with open(output_path, encoding="utf-8") as f:
                    report = json.load(f)
            except ValueError as e:
                raise AnalyzerDegradation("Failed to parse Lighthouse JSON output") from e

            if not isinstance(report, dict):
                raise AnalyzerDegradation("Unexpected Lighthouse report shape")

            return AuditReport(
                performance=extract_lighthouse_score(report, "performance"),
                accessibility=extract_lighthouse_score(report, "accessibility"),
                seo=extract_lighthouse_score(report, "seo"),
            )
        finally:
            try:
                os.remove(output_path)
            except OSError:
                pass


def analyze_lighthouse(url: str, runner: Optional[AuditRunner]) -> Dict[str, Optional[int]]:
    """Lighthouse scores for the page, all None when the audit cannot run."""
    empty = {
        "lighthouse_performance": None,
        "lighthouse_accessibility": None,
        "lighthouse_seo": None,
    }
    if runner is None:
        return empty

    try:
        report = runner.run_audit(url)
    except NEVER_DEGRADE:
        raise
    except Exception as e:
        logger.warning(f"Lighthouse analysis failed for {url}: {e}")
        return empty

    return {
        "lighthouse_performance": report.performance,
        "lighthouse_accessibility": report.accessibility,
        "lighthouse_seo": report.seo,
    }
