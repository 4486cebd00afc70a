import logging
from typing import Any, Dict, List, Optional

from app.features.scan.services.analysis.base import (
    NEVER_DEGRADE,
    degrades_to,
    inline_dimension_px,
    inline_font_size,
)
from app.features.scan.services.external.base import MOBILE_VIEWPORT, PageRenderer
from app.features.scan.services.parsing.document import Document

logger = logging.getLogger(__name__)

HORIZONTAL_SCROLL_TOLERANCE_PX = 10
MIN_TAP_TARGET_PX = 44  # Apple's minimum recommended tap target
MIN_TEXT_SIZE_PX = 12

TAPPABLE_SELECTOR = 'a, button, input[type="submit"], input[type="button"]'
TEXT_SELECTOR = 'p, span, li, td'


def _issue(issue_type: str, message: str, severity: str) -> Dict[str, str]:
    return {"type": issue_type, "issue": message, "severity": severity}


def check_viewport_meta(document: Document) -> Optional[Dict[str, str]]:
    viewport = document.select_first('meta[name="viewport"]')
    if viewport is None:
        return _issue("viewport", "Missing viewport meta tag", "high")

    if "width=device-width" not in (viewport.attr("content") or ""):
        return _issue("viewport", "Viewport not set to device-width", "medium")

    return None


def check_horizontal_scroll(url: str, renderer: Optional[PageRenderer]) -> Optional[Dict[str, str]]:
    """Render on a phone-sized screen; any failure here is logged and skipped."""
    if renderer is None:
        return None

    viewport_width = MOBILE_VIEWPORT.width
    try:
        page_width = renderer.render(url, MOBILE_VIEWPORT).scroll_width
    except NEVER_DEGRADE:
        raise
    except Exception as e:
        logger.warning(f"Mobile viewport render failed for {url}: {e}")
        return None

    if page_width > viewport_width + HORIZONTAL_SCROLL_TOLERANCE_PX:
        return _issue(
            "horizontal_scroll",
            f"Page width ({page_width}px) exceeds mobile viewport ({viewport_width}px)",
            "high",
        )
    return None


def check_tap_targets(document: Document) -> Optional[Dict[str, str]]:
    small_targets = 0
    for element in document.select(TAPPABLE_SELECTOR):
        size = inline_dimension_px(element.attr("style"))
        if size is not None and size < MIN_TAP_TARGET_PX:
            small_targets += 1

    if small_targets > 0:
        return _issue("tap_targets", f"{small_targets} potentially small tap targets detected", "medium")
    return None


def check_text_size(document: Document) -> Optional[Dict[str, str]]:
    small_text_found = False
    for element in document.select(TEXT_SELECTOR):
        size = inline_font_size(element.attr("style"), px_only=True)
        if size is not None and size < MIN_TEXT_SIZE_PX:
            small_text_found = True
            break

    if small_text_found:
        return _issue("text_size", "Some text may be too small on mobile", "low")
    return None


@degrades_to({"mobile_issues": []})
def analyze_mobile_viewport(
    document: Document,
    url: str,
    renderer: Optional[PageRenderer] = None,
) -> Dict[str, Any]:
    findings = [
        check_viewport_meta(document),
        check_horizontal_scroll(url, renderer),
        check_tap_targets(document),
        check_text_size(document),
    ]
    issues: List[Dict[str, str]] = [finding for finding in findings if finding is not None]
    return {"mobile_issues": issues}
