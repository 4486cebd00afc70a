from typing import Any, Dict, List, Optional

from app.features.scan.services.analysis.base import degrades_to
from app.features.scan.services.parsing.document import Document, Element

TRUST_PATTERNS = {
    'guarantee': ['money back', 'guarantee', 'guaranteed', 'risk-free', 'risk free'],
    'security': ['secure', 'ssl', 'encrypted', 'safe checkout', 'secure checkout', 'protected'],
    'reviews': ['reviews', 'testimonials', 'rated', 'stars', 'customer feedback'],
    'certifications': ['certified', 'accredited', 'approved', 'verified', 'trusted'],
    'shipping': ['free shipping', 'fast delivery', 'free delivery', 'express shipping'],
    'support': ['24/7', 'customer support', 'live chat', 'help center'],
}

TRUST_BADGE_PATTERNS = [
    'trust', 'secure', 'badge', 'seal', 'certified', 'ssl', 'mcafee', 'norton', 'verisign', 'bbb',
]

REVIEW_SCHEMA_MARKERS = ['"@type":"Review"', '"@type": "Review"', "'@type':'Review'"]


def text_signals(body_text: str) -> List[Dict[str, Any]]:
    """Every vocabulary phrase present in the page copy, not just the first per category."""
    text = body_text.lower()
    return [
        {"category": category, "pattern": pattern, "found": True}
        for category, patterns in TRUST_PATTERNS.items()
        for pattern in patterns
        if pattern in text
    ]


def badge_signal(image: Element) -> Optional[Dict[str, Any]]:
    src = (image.attr("src") or "").lower()
    alt = (image.attr("alt") or "").lower()

    for pattern in TRUST_BADGE_PATTERNS:
        if pattern in src or pattern in alt:
            return {
                "category": "badge",
                "pattern": pattern,
                "found": True,
                "element": "img",
                "alt": image.attr("alt"),
            }
    return None


@degrades_to({"trust_signals": []})
def analyze_trust_signals(document: Document) -> Dict[str, Any]:
    signals = text_signals(document.text("body"))

    for image in document.select("img"):
        signal = badge_signal(image)
        if signal is not None:
            signals.append(signal)

    if any(marker in document.html for marker in REVIEW_SCHEMA_MARKERS):
        signals.append({"category": "schema", "pattern": "Review schema detected", "found": True})

    return {"trust_signals": signals}
