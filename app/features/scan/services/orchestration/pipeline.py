"""
Sequential page audit pipeline.

One run fetches the page once, then feeds the parsed document through every
analyzer in a fixed order. Heuristic and external steps absorb their own
faults; anything that still escapes a step ends the run and is reported
against the step that was active.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.features.scan.exceptions import AnalysisTimeoutError, PipelineStepError
from app.features.scan.services.analysis.cms_detector import detect_cms
from app.features.scan.services.analysis.cta_analyzer import analyze_cta_elements
from app.features.scan.services.analysis.form_friction import analyze_form_friction
from app.features.scan.services.analysis.image_optimization import analyze_image_optimization
from app.features.scan.services.analysis.mobile_viewport import analyze_mobile_viewport
from app.features.scan.services.analysis.readability import analyze_readability
from app.features.scan.services.analysis.schema_markup import analyze_schema_markup
from app.features.scan.services.analysis.trust_signals import analyze_trust_signals
from app.features.scan.services.external.base import AuditRunner, PageRenderer
from app.features.scan.services.external.lighthouse import analyze_lighthouse
from app.features.scan.services.external.screenshot import capture_screenshot
from app.features.scan.services.fetching.fetcher import Fetcher
from app.features.scan.services.parsing.document import Document
from app.platform.config import settings

logger = logging.getLogger(__name__)

FETCH_STEP = "fetch_url"

STEPS = [
    FETCH_STEP,
    "detect_cms",
    "analyze_cta_elements",
    "analyze_form_friction",
    "analyze_trust_signals",
    "analyze_mobile_viewport",
    "analyze_readability",
    "analyze_image_optimization",
    "analyze_schema_markup",
    "analyze_lighthouse",
    "capture_screenshot",
]

StepCallback = Callable[[str], None]


class AnalysisPipeline:
    """
    Runs every audit step for one URL and returns the merged result fields.

    External tools are injected so a caller can swap in fakes. A renderer or
    auditor of None skips the checks that need it, leaving their fields
    empty.
    """

    def __init__(
        self,
        fetcher: Fetcher = None,
        renderer: Optional[PageRenderer] = None,
        auditor: Optional[AuditRunner] = None,
        time_limit: float = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher or Fetcher()
        self.renderer = renderer
        self.auditor = auditor
        self.time_limit = time_limit or settings.SCAN_TIME_LIMIT_SECONDS
        self.clock = clock

    @classmethod
    def with_default_tools(cls) -> "AnalysisPipeline":
        from app.features.scan.services.external.browser import SeleniumRenderer
        from app.features.scan.services.external.lighthouse import LighthouseRunner

        return cls(renderer=SeleniumRenderer(), auditor=LighthouseRunner())

    def _fetch_document(self, url: str) -> Document:
        html = self.fetcher.fetch_html(url)
        return Document.from_html(html)

    def _document_steps(self, url: str, document: Document) -> List[Tuple[str, Callable[[], Dict[str, Any]]]]:
        return [
            ("detect_cms", lambda: detect_cms(document)),
            ("analyze_cta_elements", lambda: analyze_cta_elements(document)),
            ("analyze_form_friction", lambda: analyze_form_friction(document)),
            ("analyze_trust_signals", lambda: analyze_trust_signals(document)),
            ("analyze_mobile_viewport", lambda: analyze_mobile_viewport(document, url, self.renderer)),
            ("analyze_readability", lambda: analyze_readability(document)),
            ("analyze_image_optimization", lambda: analyze_image_optimization(document)),
            ("analyze_schema_markup", lambda: analyze_schema_markup(document)),
            ("analyze_lighthouse", lambda: analyze_lighthouse(url, self.auditor)),
            ("capture_screenshot", lambda: {"screenshot_path": capture_screenshot(url, self.renderer)}),
        ]

    def _enter_step(self, step: str, deadline: float, on_step: Optional[StepCallback]) -> None:
        if self.clock() > deadline:
            raise AnalysisTimeoutError(f"Run exceeded {self.time_limit}s before step '{step}'")
        if on_step is not None:
            on_step(step)

    def run(self, url: str, on_step: Optional[StepCallback] = None) -> Dict[str, Any]:
        """
        Execute all steps in order.

        Raises:
            PipelineStepError: the fetch failed, the run deadline passed, or a
                step raised despite its own fault handling
        """
        deadline = self.clock() + self.time_limit
        results: Dict[str, Any] = {}

        step = FETCH_STEP
        try:
            self._enter_step(step, deadline, on_step)
            document = self._fetch_document(url)

            for step, execute in self._document_steps(url, document):
                self._enter_step(step, deadline, on_step)
                results.update(execute())
        except Exception as e:
            logger.error(f"Pipeline failed at step '{step}' for {url}: {e}", exc_info=True)
            raise PipelineStepError(step, e) from e

        logger.info(f"Pipeline finished for {url}")
        return results
