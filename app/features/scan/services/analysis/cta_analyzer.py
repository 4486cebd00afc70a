from typing import Any, Dict, List, Optional, Tuple

from app.features.scan.services.analysis.base import clamp_score, degrades_to, inline_font_size
from app.features.scan.services.parsing.document import Document, Element

CTA_SELECTOR = 'button, a.btn, a.button, [role="button"], input[type="submit"], .cta'

CTA_PATTERNS = [
    'buy now', 'buy', 'shop now', 'shop', 'add to cart', 'add to bag',
    'get started', 'start now', 'sign up', 'subscribe', 'join now',
    'learn more', 'get quote', 'book now', 'reserve', 'order now',
    'download', 'try free', 'start free', 'claim', 'grab', 'get yours',
]

MIN_FONT_SIZE = 14

PENALTY_INVALID_HREF = 5
PENALTY_NO_ACCESSIBLE_NAME = 10
PENALTY_SMALL_FONT = 5


def _matched_pattern(text: str) -> Optional[str]:
    for pattern in CTA_PATTERNS:
        if pattern in text:
            return pattern
    return None


def inspect_cta(element: Element) -> Optional[Tuple[int, Dict[str, Any]]]:
    """
    Score one candidate. Returns (penalty, detail) for a call to action, or
    None when its text matches no CTA phrase.
    """
    visible_text = element.text()
    text = visible_text.lower()
    if _matched_pattern(text) is None:
        return None

    issues: List[str] = []
    penalty = 0

    if element.tag == "a":
        href = element.attr("href")
        if not href or href == "#":
            issues.append("Missing or invalid href")
            penalty += PENALTY_INVALID_HREF

    if not text and not element.attr("aria-label"):
        issues.append("Missing accessible name")
        penalty += PENALTY_NO_ACCESSIBLE_NAME

    font_size = inline_font_size(element.attr("style"))
    if font_size is not None and font_size < MIN_FONT_SIZE:
        issues.append("Font size may be too small")
        penalty += PENALTY_SMALL_FONT

    return penalty, {"text": visible_text, "element": element.tag, "issues": issues}


@degrades_to({"cta_score": None, "cta_details": []})
def analyze_cta_elements(document: Document) -> Dict[str, Any]:
    score = 100
    details: List[Dict[str, Any]] = []

    for element in document.select(CTA_SELECTOR):
        inspected = inspect_cta(element)
        if inspected is None:
            continue
        penalty, detail = inspected
        score -= penalty
        details.append(detail)

    if not details:
        score = 0

    return {"cta_score": clamp_score(score), "cta_details": details}
