import logging
import os
import uuid
from typing import Optional

from app.features.scan.services.analysis.base import NEVER_DEGRADE
from app.features.scan.services.external.base import DESKTOP_VIEWPORT, PageRenderer
from app.platform.config import settings

logger = logging.getLogger(__name__)

SCREENSHOT_SUBDIR = "screenshots"


def screenshot_file_path(relative_path: str) -> str:
    return os.path.join(settings.STATIC_DIR, relative_path)


def capture_screenshot(url: str, renderer: Optional[PageRenderer]) -> Optional[str]:
    """
    Full-page desktop screenshot saved under the static directory.

    Returns the path relative to STATIC_DIR, or None when capture fails.
    """
    if renderer is None:
        return None

    relative_path = f"{SCREENSHOT_SUBDIR}/{uuid.uuid4()}.png"
    try:
        result = renderer.render(url, DESKTOP_VIEWPORT, full_page=True, capture=True)
        if not result.screenshot:
            raise ValueError("renderer returned no image data")

        target = screenshot_file_path(relative_path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(result.screenshot)
    except NEVER_DEGRADE:
        raise
    except Exception as e:
        logger.warning(f"Screenshot capture failed for {url}: {e}")
        return None

    return relative_path


def remove_screenshot(relative_path: Optional[str]) -> bool:
    """Delete a stored screenshot; a missing file is not an error."""
    if not relative_path:
        return False
    try:
        os.remove(screenshot_file_path(relative_path))
        return True
    except FileNotFoundError:
        return False
