import posixpath
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from app.features.scan.services.analysis.base import degrades_to
from app.features.scan.services.parsing.document import Document, Element

LEGACY_FORMATS = ('jpg', 'jpeg', 'png', 'gif')

MAX_DATA_URI_CHARS = 10000
MAX_SRC_CHARS = 100


def image_extension(src: str) -> str:
    """Lower-cased extension of the URL path, '' when there is none."""
    try:
        path = urlparse(src).path
    except ValueError:
        return ""
    return posixpath.splitext(path)[1].lstrip(".").lower()


def inspect_image(image: Element) -> Optional[Dict[str, Any]]:
    src = image.attr("src") or ""
    alt = image.attr("alt")
    issues: List[str] = []

    if not alt:
        issues.append("Missing alt attribute")

    if not image.attr("width") or not image.attr("height"):
        issues.append("Missing width/height attributes (causes layout shift)")

    if not image.attr("loading"):
        issues.append('Consider adding loading="lazy" for below-fold images')

    extension = image_extension(src)
    if extension in LEGACY_FORMATS:
        issues.append(f"Consider using modern format (WebP/AVIF) instead of {extension}")

    if src.startswith("data:") and len(src) > MAX_DATA_URI_CHARS:
        issues.append("Large data URI detected - consider external file")

    if not issues:
        return None

    return {"src": src[:MAX_SRC_CHARS], "alt": alt, "issues": issues}


@degrades_to({"image_issues": []})
def analyze_image_optimization(document: Document) -> Dict[str, Any]:
    inspected = (inspect_image(image) for image in document.select("img"))
    return {"image_issues": [entry for entry in inspected if entry is not None]}
