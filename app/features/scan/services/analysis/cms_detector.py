import re
from typing import Any, Dict, Optional

from app.features.scan.services.analysis.base import degrades_to
from app.features.scan.services.parsing.document import Document

# Names as they appear in <meta name="generator">
GENERATOR_NAMES = ['wordpress', 'drupal', 'joomla', 'wix', 'squarespace', 'webflow', 'ghost', 'hugo']

# Checked in order, first hit wins
HTML_MARKERS = [
    ('shopify', ['cdn.shopify.com', 'myshopify.com']),
    ('wordpress', ['wp-content', 'wp-includes']),
    ('magento', ['/static/frontend/', 'mage/']),
    ('wix', ['static.wixstatic.com']),
    ('squarespace', ['squarespace.com']),
    ('webflow', ['webflow.com']),
]


def cms_from_generator(document: Document) -> Optional[str]:
    generator = document.select_first('meta[name="generator"]')
    content = (generator.attr("content") or "").lower() if generator else ""

    for name in GENERATOR_NAMES:
        if re.search(rf"\b{name}\b", content):
            return name
    return None


def cms_from_markup(html: str) -> Optional[str]:
    source = html.lower()
    for cms, markers in HTML_MARKERS:
        if any(marker in source for marker in markers):
            return cms
    return None


@degrades_to({"cms_type": None})
def detect_cms(document: Document) -> Dict[str, Any]:
    return {"cms_type": cms_from_generator(document) or cms_from_markup(document.html)}
